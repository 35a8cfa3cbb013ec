"""SLO catalog model and tag filtering."""

from slo_combine.catalog.records import (
    CatalogError,
    SLODocument,
    SLORecord,
    Tag,
    load_catalog,
    parse_catalog,
)
from slo_combine.catalog.tags import (
    display_catalog,
    filter_by_tags,
    parse_tag,
    tag_label,
    unique_tags,
)

__all__ = [
    "CatalogError",
    "SLODocument",
    "SLORecord",
    "Tag",
    "load_catalog",
    "parse_catalog",
    "display_catalog",
    "filter_by_tags",
    "parse_tag",
    "tag_label",
    "unique_tags",
]
