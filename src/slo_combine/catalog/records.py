"""SLO catalog records: the read-only input to the combination engine."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class CatalogError(Exception):
    """Raised when a catalog source cannot be read or validated."""


class Tag(BaseModel):
    """A key/values attribute attached to an SLO document.

    Only the first value takes part in comparisons, so two tags with the
    same key and first value are the same tag for filtering purposes.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    values: tuple[str, ...] = Field(default_factory=tuple)

    @property
    def first_value(self) -> str | None:
        return self.values[0] if self.values else None

    @property
    def identity(self) -> tuple[str, str | None]:
        return (self.key, self.first_value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tag):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)


class SLODocument(BaseModel):
    """Document payload of an SLO record.

    ``tags`` is ``None`` when the document carries no tags attribute at all,
    which is distinct from an empty tag list. Unknown fields written by the
    SLO definition form are kept as-is.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(default="", description="Human-readable SLO name")
    indicator: str = Field(default="", description="Indicator kind, e.g. error_budget")
    entity_guid: str = Field(default="", alias="entityGuid")
    tags: list[Tag] | None = Field(default=None)


class SLORecord(BaseModel):
    """A single SLO in the catalog."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Stable SLO identifier")
    document: SLODocument = Field(default_factory=SLODocument)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def name(self) -> str:
        return self.document.name or self.id


def parse_catalog(items: Iterable[SLORecord | dict[str, Any]]) -> list[SLORecord]:
    """Validate raw catalog entries into :class:`SLORecord` objects."""
    records: list[SLORecord] = []
    for item in items:
        if isinstance(item, SLORecord):
            records.append(item)
        else:
            records.append(SLORecord.model_validate(item))
    return records


def _records_from_yaml(path: Path) -> list[SLORecord]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise CatalogError(f"Cannot read catalog file '{path}': {exc}") from exc

    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("slos", [data]) if "id" not in data else [data]
    if not isinstance(data, list):
        raise CatalogError(f"Catalog file '{path}' must contain a list of SLO records")

    try:
        return parse_catalog(data)
    except ValidationError as exc:
        raise CatalogError(f"Invalid SLO record in '{path}': {exc}") from exc


def load_catalog(path: str | Path) -> list[SLORecord]:
    """Load a catalog from a YAML file or a directory of YAML files.

    A file may hold a list of records, a mapping with an ``slos`` list, or a
    single record. Directories are read in sorted file order, ``.yaml``
    before ``.yml``.
    """
    path = Path(path)
    if not path.exists():
        raise CatalogError(f"Catalog path '{path}' does not exist")
    if path.is_file():
        return _records_from_yaml(path)

    records: list[SLORecord] = []
    for file in sorted(path.glob("*.yaml")):
        records.extend(_records_from_yaml(file))
    for file in sorted(path.glob("*.yml")):
        if not file.with_suffix(".yaml").exists():
            records.extend(_records_from_yaml(file))
    return records
