from __future__ import annotations

from datetime import UTC, datetime

import pytest

from worklens.domain.model import (
    ActorIdentity,
    EntityKind,
    IdentityComponent,
    Meeting,
    Project,
    Task,
)

DUE = datetime(2025, 2, 1, 17, 30, tzinfo=UTC)


def _task(title: str, **overrides: object) -> Task:
    fields: dict[str, object] = {
        "store_id": "T1",
        "title": title,
        "start_date": DUE,
        "due_date": DUE,
    }
    fields.update(overrides)
    return Task(**fields)  # type: ignore[arg-type]


def test_task_rejects_blank_title() -> None:
    with pytest.raises(ValueError, match="non-empty title"):
        _task("   ")


def test_task_content_key_folds_case_and_whitespace() -> None:
    first = _task("Fix   the Bug ")
    second = _task("fix the bug", store_id="T2", due_date=DUE.replace(hour=8))

    assert first.content_key == second.content_key
    assert first.content_key == ("fix the bug", DUE.date())


def test_entity_kinds() -> None:
    assert Task.KIND is EntityKind.TASK
    assert Project.KIND is EntityKind.PROJECT
    assert Meeting.KIND is EntityKind.MEETING


def test_meeting_content_key_uses_start_day() -> None:
    meeting = Meeting(store_id=None, title="Weekly Sync", start=DUE)

    assert meeting.content_key == ("weekly sync", DUE.date())


def test_actor_identity_trims_and_drops_blank_components() -> None:
    actor = ActorIdentity(id=" U1 ", email="   ", display_name=None)

    assert actor.component(IdentityComponent.ID) == "U1"
    assert actor.component(IdentityComponent.EMAIL) is None
    assert actor.present_components() == ((IdentityComponent.ID, "U1"),)
    assert not actor.is_anonymous


def test_actor_identity_without_components_is_anonymous() -> None:
    assert ActorIdentity().is_anonymous
    assert ActorIdentity(email="", display_name="  ").is_anonymous


def test_present_components_follow_priority_order() -> None:
    actor = ActorIdentity(id="U1", email="u1@x.com", display_name="Uma")

    assert [component for component, _ in actor.present_components()] == [
        IdentityComponent.ID,
        IdentityComponent.EMAIL,
        IdentityComponent.DISPLAY_NAME,
    ]
