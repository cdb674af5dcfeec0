"""Domain primitives: raw record aliases + the actor identity value object."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime

from worklens.domain.model.enums import IdentityComponent

type Scalar = str | int | float | bool | datetime | date | None
type RawValue = Scalar | Sequence[RawValue] | Mapping[str, RawValue]
type RawRecord = Mapping[str, RawValue]
type StoreId = str


@dataclass(frozen=True, slots=True)
class ActorIdentity:
    """What the caller knows about the acting user. Any part may be absent."""

    id: str | None = None
    email: str | None = None
    display_name: str | None = None

    def component(self, component: IdentityComponent) -> str | None:
        """Return the trimmed value of ``component`` or ``None`` when blank."""

        match component:
            case IdentityComponent.ID:
                raw = self.id
            case IdentityComponent.EMAIL:
                raw = self.email
            case IdentityComponent.DISPLAY_NAME:
                raw = self.display_name
        if raw is None:
            return None
        stripped = raw.strip()
        return stripped or None

    def present_components(self) -> tuple[tuple[IdentityComponent, str], ...]:
        """Present components in resolution priority order (id, email, display name)."""

        present: list[tuple[IdentityComponent, str]] = []
        for component in IdentityComponent:
            value = self.component(component)
            if value is not None:
                present.append((component, value))
        return tuple(present)

    @property
    def is_anonymous(self) -> bool:
        return not self.present_components()
