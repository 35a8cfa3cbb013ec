"""Tag intersection filtering over the SLO catalog."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from slo_combine.catalog.records import SLORecord, Tag


def tag_label(tag: Tag) -> str:
    """Label shown in the tag picker, e.g. ``env=prod``."""
    return f"{tag.key}={tag.first_value or ''}"


def parse_tag(text: str) -> Tag:
    """Parse a ``key=value`` label back into a :class:`Tag`."""
    key, sep, value = text.partition("=")
    key = key.strip()
    if not sep or not key:
        raise ValueError(f"Invalid tag '{text}'. Use the form key=value.")
    value = value.strip()
    return Tag(key=key, values=(value,) if value else ())


def unique_tags(catalog: Iterable[SLORecord]) -> list[Tag]:
    """Distinct tags across every document in the catalog, first-seen order."""
    seen: set[Tag] = set()
    result: list[Tag] = []
    for slo in catalog:
        for tag in slo.document.tags or ():
            if tag not in seen:
                seen.add(tag)
                result.append(tag)
    return result


def filter_by_tags(
    catalog: Iterable[SLORecord],
    selected_tags: Iterable[Tag],
) -> list[SLORecord]:
    """Catalog entries carrying every one of ``selected_tags``.

    AND semantics: an entry matching only some of the tags is excluded.
    With no tags selected the whole catalog is returned; otherwise documents
    without a tags attribute never match.
    """
    wanted = {tag.identity for tag in selected_tags}
    if not wanted:
        return list(catalog)
    result: list[SLORecord] = []
    for slo in catalog:
        tags = slo.document.tags
        if tags is None:
            continue
        if wanted <= {tag.identity for tag in tags}:
            result.append(slo)
    return result


def display_catalog(
    catalog: Sequence[SLORecord],
    selected_tags: Sequence[Tag],
) -> list[SLORecord]:
    """Catalog as shown to the user: everything when no tag is selected."""
    if not selected_tags:
        return list(catalog)
    return filter_by_tags(catalog, selected_tags)
