"""Collection names per entity kind."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from worklens.domain.model import EntityKind

from .env import env_str

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class CollectionConfig:
    tasks: str = "tasks"
    self_tasks: str = "selfTasks"
    projects: str = "projects"
    meetings: str = "events"

    def collection_for(self, kind: EntityKind) -> str:
        return self.as_mapping()[kind]

    def as_mapping(self) -> Mapping[EntityKind, str]:
        return MappingProxyType(
            {
                EntityKind.TASK: self.tasks,
                EntityKind.SELF_TASK: self.self_tasks,
                EntityKind.PROJECT: self.projects,
                EntityKind.MEETING: self.meetings,
            }
        )


def get_collection_config() -> CollectionConfig:
    defaults = CollectionConfig()
    return CollectionConfig(
        tasks=env_str("WORKLENS_TASKS_COLLECTION", defaults.tasks),
        self_tasks=env_str("WORKLENS_SELF_TASKS_COLLECTION", defaults.self_tasks),
        projects=env_str("WORKLENS_PROJECTS_COLLECTION", defaults.projects),
        meetings=env_str("WORKLENS_MEETINGS_COLLECTION", defaults.meetings),
    )
