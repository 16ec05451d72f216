"""
Test Suite
==========

Test Categories:
- unit: Parser, resolver, compositor, browser pool and capture tests
- integration: HTTP contract tests against the FastAPI application
"""
