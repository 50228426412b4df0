"""
Pytest fixtures for the membership platform tests.
"""

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from accounts.models import PaymentStatus, RegistrationStatus
from administration.models import AdminGrant, AdminRole

User = get_user_model()

PASSWORD = "Corr3ct-Horse-Battery!"


@pytest.fixture
def password():
    return PASSWORD


@pytest.fixture
def make_user(db):
    """Factory for accounts; approved unless told otherwise."""
    counter = {"n": 0}

    def _make_user(email=None, registration_status=RegistrationStatus.APPROVED, **extra):
        counter["n"] += 1
        email = email or f"member{counter['n']}@example.com"
        if registration_status == RegistrationStatus.APPROVED:
            extra.setdefault("payment_status", PaymentStatus.VERIFIED)
        return User.objects.create_user(
            email=email,
            password=extra.pop("password", PASSWORD),
            registration_status=registration_status,
            **extra,
        )

    return _make_user


@pytest.fixture
def user(make_user):
    """An approved account on the free tier."""
    return make_user(email="testuser@example.com")


@pytest.fixture
def pending_user(make_user):
    return make_user(
        email="pending@example.com",
        registration_status=RegistrationStatus.PAYMENT_SUBMITTED,
        payment_proof_reference="receipt-001",
    )


@pytest.fixture
def super_admin(make_user):
    """Admin holding every permission."""
    account = make_user(email="root@example.com")
    AdminGrant.objects.create(
        user=account,
        role=AdminRole.SUPER_ADMIN,
        permissions=AdminGrant.default_permissions(AdminRole.SUPER_ADMIN),
    )
    return account


@pytest.fixture
def admin(make_user, super_admin):
    """Regular admin with the role's default permissions."""
    account = make_user(email="admin@example.com")
    AdminGrant.objects.create(
        user=account,
        role=AdminRole.ADMIN,
        permissions=AdminGrant.default_permissions(AdminRole.ADMIN),
        created_by=super_admin,
    )
    return account


@pytest.fixture
def api_client():
    """Return an API client for testing."""
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, user):
    """Return an API client authenticated as ``user``."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def admin_client(super_admin):
    client = APIClient()
    client.force_authenticate(user=super_admin)
    return client
