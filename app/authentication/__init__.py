"""
Authentication application.

This app provides the identity collaborator for the messaging subsystem:
the email-based User model with its role, JWT token endpoints, and the
current-user endpoint.

Usage:
    from authentication.models import User
"""
