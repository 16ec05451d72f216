"""
Data Models
===========

Pydantic data models for request/response validation and internal data structures.

Models:
- schemas: component definitions, render/capture values and API schemas
"""
