"""Pytest configuration and shared fixtures."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from rest_framework.test import APIClient

from accounts.services.signup_service import signup


@pytest.fixture
def user(db):
    """A plain customer profile."""
    return signup('customer@example.com', 'secret123', 'Carla Customer')


@pytest.fixture
def other_user(db):
    return signup('other@example.com', 'secret123', 'Oscar Other')


@pytest.fixture
def employee(db):
    """An employee with an active SAVE20JANEDO coupon."""
    return signup('jane@example.com', 'secret123', 'Jane Doe', role='employee')


@pytest.fixture
def admin_user(django_user_model):
    return django_user_model.objects.create_superuser(
        email='admin@example.com', password='secret123', name='Ada Admin'
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(user):
    """API client authenticated as ``user``."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def employee_client(employee):
    client = APIClient()
    client.force_authenticate(user=employee)
    return client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def mock_gateway():
    """Stripe gateway double that returns a canned checkout session."""
    gateway = MagicMock()
    gateway.create_checkout_session.return_value = SimpleNamespace(
        id='cs_test_123',
        url='https://checkout.stripe.com/c/pay/cs_test_123',
    )
    return gateway
