"""
Recyclability and environmental impact figures for sold listings
"""

import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from ..enums.listing import ListingStatus

# ~17 reams (8500 sheets) of paper = 1 tree
PAPER_TO_TREES_RATIO = 0.017
TREE_OXYGEN_PER_YEAR = 117  # kg of oxygen per tree per year
KG_TO_MG_PER_LITER = 1_000_000
DAYS_IN_YEAR = 365

NON_RECYCLABLE_CATEGORY = "plastic"

_WITH_MATERIALS = re.compile(r"with\s+([^.]+)", re.IGNORECASE)


def _category(listing) -> str:
    material_type = getattr(listing, "material_type", None)
    return (material_type.category or "") if material_type else ""


def _sold(listings: Iterable) -> List:
    return [listing for listing in listings if listing.status == ListingStatus.SOLD]


def extract_materials(description: Optional[str]) -> List[str]:
    """Materials listed after "with" in a description, comma separated"""
    if not description:
        return []
    match = _WITH_MATERIALS.search(description)
    if not match:
        return []
    materials = [" ".join(part.split()) for part in match.group(1).split(",")]
    return [material for material in materials if material]


def listing_materials(listing) -> List[str]:
    description = (listing.description or "").lower()
    if "mixed" in description or "with" in description:
        return extract_materials(listing.description)
    category = _category(listing)
    return [category] if category else []


def recyclability_breakdown(listing) -> dict:
    materials = listing_materials(listing)
    total = len(materials)
    non_recyclable = sum(1 for material in materials if NON_RECYCLABLE_CATEGORY in material.lower())
    recyclable = total - non_recyclable
    return {
        "listing_id": listing.id,
        "materials": materials,
        "total_materials": total,
        "recyclable_count": recyclable,
        "non_recyclable_count": non_recyclable,
        "recyclable_percentage": (recyclable / total) * 100 if total else 0.0,
        "non_recyclable_percentage": (non_recyclable / total) * 100 if total else 0.0,
    }


def recyclability_stats(listings: Iterable) -> dict:
    """Everything except the plastic category counts as recyclable"""
    sold = _sold(listings)
    non_recyclable = sum(1 for listing in sold if _category(listing).lower() == NON_RECYCLABLE_CATEGORY)
    total = len(sold)
    recyclable = total - non_recyclable
    return {
        "total_sold": total,
        "recyclable_count": recyclable,
        "non_recyclable_count": non_recyclable,
        "recyclable_percentage": (recyclable / total) * 100 if total else 0.0,
    }


def paper_weight_kg(listing) -> float:
    if not listing.quantity or not listing.unit:
        return 0.0

    description = (listing.description or "").lower()
    if "paper" not in description and "paper" not in _category(listing).lower():
        return 0.0

    weight = float(listing.quantity)
    if listing.unit.lower() == "grams":
        weight = weight / 1000

    # Mixed listings only count their paper share
    if "mixed" in description:
        match = _WITH_MATERIALS.search(description)
        if match:
            parts = match.group(1).split(",")
            paper_parts = sum(1 for part in parts if "paper" in part)
            return weight * paper_parts / len(parts)
    return weight


def _days_since(moment: Optional[datetime], now: datetime) -> int:
    if moment is None:
        return 1
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return max(1, int((now - moment).total_seconds() // 86400))


def environmental_impact(listings: Iterable, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    sold = _sold(listings)

    total_paper = 0.0
    cumulative_oxygen = 0.0
    for listing in sold:
        paper = paper_weight_kg(listing)
        total_paper += paper
        oxygen_per_day = paper * PAPER_TO_TREES_RATIO * TREE_OXYGEN_PER_YEAR / DAYS_IN_YEAR
        cumulative_oxygen += oxygen_per_day * _days_since(listing.updated_at or listing.created_at, now)

    trees_saved = total_paper * PAPER_TO_TREES_RATIO
    oxygen_per_year = trees_saved * TREE_OXYGEN_PER_YEAR
    return {
        "total_paper_weight_kg": total_paper,
        "trees_saved": trees_saved,
        "oxygen_per_year_kg": oxygen_per_year,
        "oxygen_per_year_mg_per_l": oxygen_per_year * KG_TO_MG_PER_LITER,
        "cumulative_oxygen_kg": cumulative_oxygen,
        "cumulative_oxygen_mg_per_l": cumulative_oxygen * KG_TO_MG_PER_LITER,
    }
