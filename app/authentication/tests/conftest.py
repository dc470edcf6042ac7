"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get("/api/v1/auth/me/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.models import User
from authentication.tests.factories import AdminFactory, UserFactory


@pytest.fixture
def user(db):
    """Create a parent-role user."""
    return UserFactory()


@pytest.fixture
def admin_user(db):
    """Create an admin-role user."""
    return AdminFactory()


@pytest.fixture
def child_user(db):
    """Create a child-role user."""
    return UserFactory(role=User.Role.CHILD)


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, user):
    """DRF test client authenticated as the parent-role user."""
    api_client.force_authenticate(user=user)
    return api_client
