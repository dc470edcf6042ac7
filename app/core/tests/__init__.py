"""
Tests for core app.

This package contains test modules for:
- test_decorators.py: retry_on_transient
- test_exceptions.py: Application errors and the DRF exception handler
- test_views.py: Health check endpoint
"""
