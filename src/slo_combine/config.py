"""Configuration for the SLO combine tooling."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from slo_combine.persistence.gateway import SLO_COLLECTION_KEY, SLO_DOCUMENT_ID

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class CombineConfig:
    """Where the catalog comes from and where the selection is stored."""
    collection: str = SLO_COLLECTION_KEY
    document_id: str = SLO_DOCUMENT_ID
    store_path: str = "~/.slo-combine/storage.db"
    catalog_path: str | None = None
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        level = self.log_level.upper() if isinstance(self.log_level, str) else None
        if level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level '{self.log_level}'. Use one of: {', '.join(LOG_LEVELS)}"
            )
        self.log_level = level

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CombineConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config option(s): {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> CombineConfig:
        """Load configuration from a YAML file."""
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Config file '{path}' is not valid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Config file '{path}' must contain a mapping")
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path) -> None:
        path = Path(path)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
