from __future__ import annotations

import pytest

from worklens.domain.access import (
    ROLE_BINDINGS,
    ROLES_BY_KIND,
    binding_for,
    bindings_for_component,
    match_value,
    matches,
    matching_alias,
)
from worklens.domain.model import EntityKind, IdentityComponent, MatcherKind, RelationshipRole

R = RelationshipRole


def test_every_role_has_a_binding_and_primary_alias() -> None:
    for role in RelationshipRole:
        binding = ROLE_BINDINGS[role]
        assert binding.role is role
        assert binding.primary_alias == binding.aliases[0]


def test_every_kind_declares_known_roles() -> None:
    for kind in EntityKind:
        assert ROLES_BY_KIND[kind]
        assert all(role in ROLE_BINDINGS for role in ROLES_BY_KIND[kind])


def test_assignee_by_id_aliases_keep_historical_order() -> None:
    assert binding_for(R.ASSIGNEE_BY_ID).aliases[:3] == ("assigneeId", "assignedId", "assignedUID")


def test_exact_id_match_on_any_alias() -> None:
    record = {"title": "Fix bug", "employeeId": "U1"}

    assert matches(R.ASSIGNEE_BY_ID, record, "U1")
    assert matching_alias(binding_for(R.ASSIGNEE_BY_ID), record, "U1") == "employeeId"


def test_id_comparison_is_case_sensitive() -> None:
    assert not matches(R.ASSIGNEE_BY_ID, {"assigneeId": "u1"}, "U1")


def test_email_comparison_ignores_case_and_whitespace() -> None:
    assert matches(R.ASSIGNEE_BY_EMAIL, {"assigneeEmail": "  U1@X.com "}, "u1@x.com")


def test_array_contains() -> None:
    record = {"assignedIds": ["U2", "U1"]}

    assert matches(R.ASSIGNEE_ARRAY_BY_ID, record, "U1")
    assert not matches(R.ASSIGNEE_ARRAY_BY_ID, record, "U3")


def test_array_of_objects_checks_nested_identity_keys() -> None:
    record = {"members": [{"name": "Ann", "userUid": "U7"}, {"uid": "U1"}]}

    assert matches(R.MEMBER_OBJECTS_BY_ID, record, "U1")
    assert matches(R.MEMBER_OBJECTS_BY_ID, record, "U7")
    assert not matches(R.MEMBER_OBJECTS_BY_ID, record, "U9")


@pytest.mark.parametrize(
    "record",
    [
        {},
        {"assigneeId": None},
        {"assigneeId": 42},
        {"assigneeId": ["U1"]},
        {"assigneeId": {"uid": "U1"}},
    ],
)
def test_missing_or_mistyped_fields_never_match(record: dict[str, object]) -> None:
    assert not matches(R.ASSIGNEE_BY_ID, record, "U1")


def test_array_matcher_ignores_strings_and_scalars() -> None:
    assert not match_value(MatcherKind.ARRAY_CONTAINS, "U1", "U1")
    assert not match_value(MatcherKind.ARRAY_CONTAINS, 5, "U1")
    assert not match_value(MatcherKind.ARRAY_OF_OBJECTS_CONTAINS, ["U1"], "U1")


def test_bindings_for_component_keeps_role_order() -> None:
    roles = (R.CREATOR_BY_EMAIL, R.ASSIGNEE_BY_ID, R.ASSIGNEE_BY_EMAIL)

    bindings = bindings_for_component(roles, IdentityComponent.EMAIL)

    assert [binding.role for binding in bindings] == [R.CREATOR_BY_EMAIL, R.ASSIGNEE_BY_EMAIL]
