"""Pydantic schema and loader for JSON seed files.

Format::

    {"collections": {"tasks": [{"id": "R1", "title": "Fix bug", ...}, ...], ...}}

Every document needs a non-blank ``id``; all other fields are stored as-is.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from worklens.config import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from worklens.domain.model import RawValue

log = getLogger(__name__)


class SeedDocument(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    doc_id: str = Field(alias="id")

    @field_validator("doc_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValueError("document id must not be blank")
            return stripped
        return value

    @property
    def data(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class SeedFile(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    collections: dict[str, list[SeedDocument]] = Field(default_factory=dict)

    def as_collections(self) -> dict[str, dict[str, dict[str, Any]]]:
        return {
            name: {document.doc_id: document.data for document in documents}
            for name, documents in self.collections.items()
        }


class SeedTarget(Protocol):
    def load(self, collections: Mapping[str, Mapping[str, Mapping[str, RawValue]]]) -> int: ...


def parse_seed(text: str) -> SeedFile:
    try:
        return SeedFile.model_validate_json(text)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid seed data: {exc}") from exc


def load_seed_file(path: Path) -> SeedFile:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read seed file {path}: {exc}") from exc
    return parse_seed(text)


def seed_store(store: SeedTarget, seed: SeedFile) -> int:
    count = store.load(seed.as_collections())
    log.info("Seeded %d document(s) into %d collection(s)", count, len(seed.collections))
    return count
