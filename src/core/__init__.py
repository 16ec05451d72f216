"""
Core Business Logic
==================

Core modules for component rendering and screenshot capture.

Modules:
- component: Component parsing, scope resolution and template storage
- rendering: HTML composition, browser pool and capture pipeline
- errors: Failure taxonomy
"""
