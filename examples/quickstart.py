"""
SLO Combine Quickstart — pick SLOs, save them, survive a catalog refresh.

Run:
    pip install -e .
    python examples/quickstart.py
"""

import asyncio
from pathlib import Path

from slo_combine import CombinationController, Tag
from slo_combine.catalog import load_catalog, tag_label
from slo_combine.persistence import InMemoryDocumentStore, UserStorageGateway


def show(props):
    print(f"  displayed: {[slo.id for slo in props.display_list]}")
    print(f"  pending:   {list(props.selected_ids)}")
    print(f"  combined:  {[slo.id for slo in props.combined]}")
    print(f"  dirty={props.dirty} saving={props.saving}")
    print()


async def main():
    catalog = load_catalog(Path(__file__).parent / "catalog.yaml")
    gateway = UserStorageGateway(InMemoryDocumentStore())

    # ── 1. Mount: load the saved selection (none yet) ──────────────────
    controller = CombinationController(gateway, catalog=catalog)
    await controller.mount()
    print("Tags:", ", ".join(tag_label(t) for t in controller.unique_tags))
    print()

    # ── 2. Filter to production SLOs and pick two ──────────────────────
    print("Filter env=prod, toggle two SLOs:")
    controller.set_tag_filter([Tag(key="env", values=("prod",))])
    controller.toggle("checkout-latency")
    controller.toggle("search-errors")
    controller.render(show)

    # ── 3. Save ─────────────────────────────────────────────────────────
    print("Save:")
    await controller.save()
    controller.render(show)

    # ── 4. An SLO is deleted elsewhere; the catalog refreshes ──────────
    print("Catalog refresh without search-errors:")
    controller.update_catalog([slo for slo in catalog if slo.id != "search-errors"])
    controller.render(show)

    controller.unmount()


if __name__ == "__main__":
    asyncio.run(main())
