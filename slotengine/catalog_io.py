"""Load item catalogs from JSON files.

The catalog file is the output of the item fetcher: ``{"items": [...]}``
where each entry has at least ``id`` and ``texturePath``. Entries without a
texture are skipped; they cannot be shown in the library and so can never be
dragged. The resolvers only need membership (``item_id in catalog``) to
filter unknown ids out of drag payloads.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .types import CatalogItem

console_logger = logging.getLogger(__name__)


class ItemCatalog:
    def __init__(self, items: list[CatalogItem] | None = None) -> None:
        self.items: dict[str, CatalogItem] = {}
        for item in items or []:
            self.items.setdefault(item.id, item)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.items

    def __len__(self) -> int:
        return len(self.items)

    def get(self, item_id: str) -> CatalogItem | None:
        return self.items.get(item_id)

    @staticmethod
    def from_ids(item_ids) -> ItemCatalog:
        """Catalog of bare ids, for callers that only need membership."""
        return ItemCatalog(
            [CatalogItem(id=i, texture_path=f"{i}.png") for i in item_ids]
        )

    @staticmethod
    def from_dict(d: dict) -> ItemCatalog:
        raw_items = d.get("items") if isinstance(d, dict) else None
        if not isinstance(raw_items, list):
            raise ValueError("Catalog must contain an 'items' list")
        items = []
        skipped = 0
        for raw in raw_items:
            if (
                not isinstance(raw, dict)
                or not isinstance(raw.get("id"), str)
                or not isinstance(raw.get("texturePath"), str)
            ):
                skipped += 1
                continue
            items.append(CatalogItem.from_dict(raw))
        if skipped:
            console_logger.debug("Skipped %d catalog entries", skipped)
        return ItemCatalog(items)


def load_catalog(path: Path) -> ItemCatalog:
    """Load a JSON catalog file into an ``ItemCatalog``."""
    with open(path) as f:
        data = json.load(f)
    catalog = ItemCatalog.from_dict(data)
    console_logger.info("Loaded %d catalog items from %s", len(catalog), path)
    return catalog
