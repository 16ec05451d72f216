"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Application, directory, browser and capture settings
- logging: Structured logging configuration
"""
