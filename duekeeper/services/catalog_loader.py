"""Load and validate the predefined-card catalog.

The catalog arrives from an external fetch (or the on-disk cache) as a plain
mapping. Each predefined card is validated on its own so one malformed entry
(e.g. an unknown recurrence tag) drops only that card.
"""
import json
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from duekeeper.schemas.catalog import CatalogResponse, PredefinedCard

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """The payload is not a usable catalog at all."""


class CatalogSnapshot:
    """Immutable view of one catalog version, passed explicitly to the engines."""

    def __init__(self, schema_version: str, cards: list[PredefinedCard], last_updated: str | None = None):
        self.schema_version = schema_version
        self.last_updated = last_updated
        self._cards: dict[str, PredefinedCard] = {c.id: c for c in cards}

    @property
    def cards(self) -> list[PredefinedCard]:
        return list(self._cards.values())

    def get_card(self, card_id: str | None) -> PredefinedCard | None:
        if card_id is None:
            return None
        return self._cards.get(card_id)

    def search(self, query: str) -> list[PredefinedCard]:
        if not query:
            return self.cards
        q = query.lower()
        return [
            c for c in self._cards.values()
            if q in c.name.lower() or q in c.issuer.lower() or q in (c.category or "").lower()
        ]

    def to_response(self) -> CatalogResponse:
        return CatalogResponse(
            schema_version=self.schema_version,
            last_updated=self.last_updated,
            predefined_cards=self.cards,
        )

    def __len__(self) -> int:
        return len(self._cards)


def parse_catalog(data) -> CatalogSnapshot:
    """Build a snapshot from a decoded catalog payload."""
    if not isinstance(data, dict):
        raise CatalogError("catalog payload must be a mapping")
    schema_version = data.get("schemaVersion", data.get("schema_version"))
    if not schema_version:
        raise CatalogError("catalog payload has no schemaVersion")

    raw_cards = data.get("predefinedCards", data.get("predefined_cards")) or []
    cards: list[PredefinedCard] = []
    for raw in raw_cards:
        card_id = raw.get("id", "?") if isinstance(raw, dict) else "?"
        try:
            cards.append(PredefinedCard.model_validate(raw))
        except ValidationError as exc:
            logger.warning("Skipping catalog card %s: validation error: %s", card_id, exc)
            continue

    return CatalogSnapshot(
        schema_version=str(schema_version),
        cards=cards,
        last_updated=data.get("lastUpdated", data.get("last_updated")),
    )


def load_catalog_file(path: str | Path) -> CatalogSnapshot:
    """Read a catalog from a .json or .yaml/.yml file."""
    path = Path(path)
    try:
        with open(path) as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise CatalogError(f"cannot read catalog {path}: {exc}") from exc
    return parse_catalog(data)


def save_catalog_cache(snapshot: CatalogSnapshot, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(snapshot.to_response().model_dump_json(by_alias=True, indent=2))
    logger.info("Cached catalog version %s (%d cards) at %s", snapshot.schema_version, len(snapshot), path)


def load_cached_catalog(path: str | Path) -> CatalogSnapshot | None:
    """Return the cached catalog, or None when there is no usable cache."""
    path = Path(path)
    if not path.exists():
        return None
    try:
        return load_catalog_file(path)
    except CatalogError as exc:
        logger.warning("Ignoring unreadable catalog cache %s: %s", path, exc)
        return None


def catalog_changed(previous_version: str | None, snapshot: CatalogSnapshot) -> bool:
    return previous_version != snapshot.schema_version
