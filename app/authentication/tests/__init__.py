"""
Tests for authentication app.

This package contains test modules for:
- test_managers.py: UserManager tests
- test_models.py: User model and role helper tests
- test_views.py: Token and current-user endpoint tests

Usage:
    pytest authentication/tests/
"""
