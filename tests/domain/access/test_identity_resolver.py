from __future__ import annotations

import pytest

from worklens.domain.access import (
    IdentityResolver,
    MatchVia,
    deep_scan_contains,
    is_owned_by,
    roles_for,
)
from worklens.domain.model import ActorIdentity, EntityKind, IdentityComponent, RelationshipRole

TASK_ROLES = roles_for(EntityKind.TASK)


@pytest.mark.parametrize(
    "record",
    [
        {},
        {"title": "Other", "assigneeId": "U2"},
        {"title": "Nested", "members": [{"email": "someone@x.com"}]},
    ],
)
def test_actor_without_identity_owns_everything(record: dict[str, object]) -> None:
    resolver = IdentityResolver()

    match = resolver.resolve(ActorIdentity(), record, TASK_ROLES)

    assert match.owned
    assert match.via is MatchVia.PERMISSIVE


def test_structured_match_reports_role_and_field() -> None:
    actor = ActorIdentity(id="U1")
    record = {"title": "Fix bug", "assignedUid": "U1"}

    match = IdentityResolver().resolve(actor, record, TASK_ROLES)

    assert match.via is MatchVia.STRUCTURED
    assert match.role is RelationshipRole.ASSIGNEE_BY_ID
    assert match.field == "assignedUid"
    assert match.component is IdentityComponent.ID


def test_components_are_combined_with_or() -> None:
    actor = ActorIdentity(id="U1", email="u1@x.com")
    record = {"title": "Review", "createdByEmail": "U1@x.com", "assigneeId": "U2"}

    match = IdentityResolver().resolve(actor, record, TASK_ROLES)

    assert match.via is MatchVia.STRUCTURED
    assert match.component is IdentityComponent.EMAIL


def test_display_name_only_actor_matches_by_name() -> None:
    actor = ActorIdentity(display_name="Uma Patel")

    assert is_owned_by(actor, {"assigneeName": "uma patel"})
    assert not is_owned_by(actor, {"assigneeName": "Someone Else"})


def test_email_found_by_deep_scan_in_nested_array_of_objects() -> None:
    actor = ActorIdentity(email="u1@x.com")
    record = {
        "title": "Quarterly review",
        "reviewers": [{"role": "lead", "contact": {"workMail": " U1@X.COM "}}],
    }

    match = IdentityResolver().resolve(actor, record, TASK_ROLES)

    assert match.via is MatchVia.DEEP_SCAN
    assert match.component is IdentityComponent.EMAIL


def test_deep_scan_miss_is_not_owned() -> None:
    actor = ActorIdentity(email="u1@x.com")
    record = {"title": "Quarterly review", "reviewers": [{"contact": {"workMail": "u2@x.com"}}]}

    match = IdentityResolver().resolve(actor, record, TASK_ROLES)

    assert not match.owned
    assert match.via is MatchVia.NO_MATCH


def test_deep_scan_can_be_disabled() -> None:
    actor = ActorIdentity(email="u1@x.com")
    record = {"reviewers": [{"workMail": "u1@x.com"}]}

    assert not IdentityResolver(deep_scan=False).is_owned_by(actor, record, TASK_ROLES)


def test_deep_scan_requires_an_email() -> None:
    actor = ActorIdentity(id="U1")
    record = {"reviewers": [{"ref": "U1"}]}

    assert not IdentityResolver().is_owned_by(actor, record, TASK_ROLES)


def test_deep_scan_also_looks_for_the_id_when_email_is_known() -> None:
    actor = ActorIdentity(id="U1", email="u1@x.com")
    record = {"history": [{"by": "U1"}]}

    match = IdentityResolver().resolve(actor, record, TASK_ROLES)

    assert match.via is MatchVia.DEEP_SCAN
    assert match.component is IdentityComponent.ID


def test_roles_to_check_narrow_the_structured_match() -> None:
    actor = ActorIdentity(id="U1")
    record = {"createdByUid": "U1"}

    assert is_owned_by(actor, record, [RelationshipRole.CREATOR_BY_ID])
    assert not is_owned_by(actor, record, [RelationshipRole.ASSIGNEE_BY_ID])


def test_project_members_as_objects() -> None:
    actor = ActorIdentity(email="u1@x.com")
    record = {"name": "Apollo", "members": [{"email": "U1@x.com", "role": "dev"}]}

    match = IdentityResolver().resolve(actor, record, roles_for(EntityKind.PROJECT))

    assert match.via is MatchVia.STRUCTURED
    assert match.role is RelationshipRole.MEMBER_OBJECTS_BY_EMAIL


def test_deep_scan_contains_walks_nested_values() -> None:
    record = {"a": [1, {"b": ("x", {"c": "Needle"})}], "d": None}

    assert deep_scan_contains(record, "needle")
    assert not deep_scan_contains(record, "hay")
    assert not deep_scan_contains(record, "   ")
