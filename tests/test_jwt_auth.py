"""Tests for turning JWT claims into a Principal."""

import pytest

from mfa_callbacks.security.jwt_auth import principal_from_claims


def test_principal_maps_roles_and_username():
    principal = principal_from_claims(
        {"sub": "user-1", "preferred_username": "alice", "roles": ["admin", "Auditor"]}
    )

    assert principal.subject == "user-1"
    assert principal.username == "alice"
    assert principal.roles == {"ROLE_ADMIN", "ROLE_AUDITOR"}


def test_single_role_string_is_accepted():
    principal = principal_from_claims({"sub": "user-1", "roles": "operator"})
    assert principal.roles == {"ROLE_OPERATOR"}


def test_principal_without_optional_claims():
    principal = principal_from_claims({"sub": "user-1"})
    assert principal.username is None
    assert principal.roles == set()


@pytest.mark.parametrize("claims", [{}, {"sub": ""}, {"sub": "   "}])
def test_missing_subject_is_rejected(claims):
    with pytest.raises(ValueError):
        principal_from_claims(claims)
