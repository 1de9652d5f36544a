# grovi/catalog.py
from __future__ import annotations

from dataclasses import dataclass

from grovi.database.models import Rarity


@dataclass(frozen=True, slots=True)
class CatalogCard:
    id: int
    name: str
    rarity: Rarity


RARITY_LADDER: tuple[Rarity, ...] = (Rarity.COMMON, Rarity.RARE, Rarity.EPIC, Rarity.LEGENDARY)

# Coins paid per rarity, both on box open and on burn
RARITY_VALUES: dict[Rarity, int] = {
    Rarity.COMMON: 1,
    Rarity.RARE: 3,
    Rarity.EPIC: 10,
    Rarity.LEGENDARY: 25,
}

CATALOG: tuple[CatalogCard, ...] = (
    # Common (20)
    CatalogCard(1, "Mini Leaf Coin", Rarity.COMMON),
    CatalogCard(2, "Green Stack", Rarity.COMMON),
    CatalogCard(3, "Boost Drop", Rarity.COMMON),
    CatalogCard(4, "Sun Sprout", Rarity.COMMON),
    CatalogCard(5, "Leafy Charm", Rarity.COMMON),
    CatalogCard(6, "Coin Sprig", Rarity.COMMON),
    CatalogCard(7, "Happy Bud", Rarity.COMMON),
    CatalogCard(8, "Bloom Token", Rarity.COMMON),
    CatalogCard(9, "Seed Starter", Rarity.COMMON),
    CatalogCard(10, "Lucky Clover", Rarity.COMMON),
    CatalogCard(11, "Small Glow", Rarity.COMMON),
    CatalogCard(12, "Fresh Mint", Rarity.COMMON),
    CatalogCard(13, "Green Essence", Rarity.COMMON),
    CatalogCard(14, "Coin Sprout", Rarity.COMMON),
    CatalogCard(15, "Herb Spark", Rarity.COMMON),
    CatalogCard(16, "Leaf Drop", Rarity.COMMON),
    CatalogCard(17, "Tiny Bloom", Rarity.COMMON),
    CatalogCard(18, "Mini Shroom", Rarity.COMMON),
    CatalogCard(19, "Little Stone", Rarity.COMMON),
    CatalogCard(20, "Herbal Dust", Rarity.COMMON),
    # Rare (8)
    CatalogCard(21, "Coin Storm", Rarity.RARE),
    CatalogCard(22, "Energy Boost", Rarity.RARE),
    CatalogCard(23, "Spin Token", Rarity.RARE),
    CatalogCard(24, "Grovi Gem", Rarity.RARE),
    CatalogCard(25, "Power Leaf", Rarity.RARE),
    CatalogCard(26, "Glow Dust", Rarity.RARE),
    CatalogCard(27, "Root Crystal", Rarity.RARE),
    CatalogCard(28, "Chroma Vine", Rarity.RARE),
    # Epic (3)
    CatalogCard(29, "Leaf Wizard", Rarity.EPIC),
    CatalogCard(30, "Chilltoad", Rarity.EPIC),
    CatalogCard(31, "Time Sprout", Rarity.EPIC),
    # Legendary (2)
    CatalogCard(32, "Grovi Spirit", Rarity.LEGENDARY),
    CatalogCard(33, "Golden Guardian", Rarity.LEGENDARY),
)

_BY_ID: dict[int, CatalogCard] = {c.id: c for c in CATALOG}


def parse_rarity(value: Rarity | str) -> Rarity | None:
    if isinstance(value, Rarity):
        return value
    s = str(value).strip().lower()
    for r in Rarity:
        if r.value.lower() == s:
            return r
    return None


def next_rarity(rarity: Rarity) -> Rarity | None:
    """Next tier up the ladder, None at the top."""
    idx = RARITY_LADDER.index(rarity)
    if idx + 1 >= len(RARITY_LADDER):
        return None
    return RARITY_LADDER[idx + 1]


def get_card(catalog_id: int) -> CatalogCard | None:
    return _BY_ID.get(catalog_id)


def pool_for(rarity: Rarity, card_ids: tuple[int, ...] = ()) -> list[CatalogCard]:
    """
    Catalog cards of one rarity. When card_ids is given the pool is narrowed to
    those ids; ids that don't exist or belong to another tier are ignored.
    """
    pool = [c for c in CATALOG if c.rarity == rarity]
    if card_ids:
        wanted = set(card_ids)
        narrowed = [c for c in pool if c.id in wanted]
        if narrowed:
            return narrowed
    return pool
