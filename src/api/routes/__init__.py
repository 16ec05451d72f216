"""
API Routes
==========

Route modules included by the FastAPI application.
"""
