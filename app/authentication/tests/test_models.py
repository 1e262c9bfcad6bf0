"""
Tests for the User model's role helpers.
"""

import pytest

from authentication.models import User, UserRole
from authentication.tests.factories import UserFactory


@pytest.mark.parametrize(
    "role, is_admin, is_arbitrator",
    [
        (UserRole.EMPLOYER, False, False),
        (UserRole.CONTRACTOR, False, False),
        (UserRole.ARBITRATOR, False, True),
        (UserRole.ADMIN, True, False),
    ],
)
def test_role_helpers(db, role, is_admin, is_arbitrator):
    user = UserFactory(role=role)

    assert user.is_admin is is_admin
    assert user.is_arbitrator is is_arbitrator


def test_superuser_is_admin_whatever_the_role(db):
    user = User.objects.create_superuser(email="root@example.com", password="x")

    assert user.is_admin is True


def test_short_name_falls_back_to_email(db):
    user = UserFactory(full_name="", email="sara@example.com")

    assert user.get_short_name() == "sara"
    assert user.get_full_name() == "sara@example.com"
