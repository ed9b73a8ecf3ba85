"""Search/tab filtering, tier labels and collection statistics.

Everything here is pure and safe to recompute on every keystroke.
"""

from functools import lru_cache
from typing import Iterable, Mapping, Optional

from libs.core.config import TierDefinition, load_tier_catalog
from libs.core.models import MembershipRecord

ALL_TAB = "all"
UNKNOWN_LABEL = "Unknown"


@lru_cache()
def default_tiers() -> tuple[TierDefinition, ...]:
    return tuple(load_tier_catalog())


def tab_tags(tiers: Optional[Iterable[TierDefinition]] = None) -> dict[str, str]:
    """Map each filter tab to the ciphertext tag it selects."""
    return {tier.tab: tier.tag for tier in (tiers if tiers is not None else default_tiers())}


def filter_memberships(
    records: Iterable[MembershipRecord],
    search_term: str,
    tab: str,
    tab_tags_map: Optional[Mapping[str, str]] = None,
) -> list[MembershipRecord]:
    """
    Records whose id or owner contains ``search_term`` (case-insensitive)
    and that belong to ``tab``.

    The ``all`` tab matches every record; any other tab matches records
    whose encrypted level equals the tab's tag. Unknown tabs match nothing.
    """
    term = search_term.lower()
    if tab_tags_map is None:
        tab_tags_map = tab_tags()

    def matches_tab(record: MembershipRecord) -> bool:
        if tab == ALL_TAB:
            return True
        tag = tab_tags_map.get(tab)
        return tag is not None and record.encrypted_level == tag

    return [
        record
        for record in records
        if (term in record.id.lower() or term in record.owner.lower()) and matches_tab(record)
    ]


def level_label(tag: str, tiers: Optional[Iterable[TierDefinition]] = None) -> str:
    """Display label for a ciphertext tag (Bronze/Silver/Gold)."""
    for tier in tiers if tiers is not None else default_tiers():
        if tier.tag == tag:
            return tier.label
    return UNKNOWN_LABEL


def membership_stats(
    records: Iterable[MembershipRecord],
    tiers: Optional[Iterable[TierDefinition]] = None,
) -> dict[str, int]:
    """Total count plus one count per tier tab, e.g. ``{"total": 3, "level1": 2, ...}``."""
    records = list(records)
    stats = {"total": len(records)}
    for tab, tag in tab_tags(tiers).items():
        stats[tab] = sum(1 for record in records if record.encrypted_level == tag)
    return stats
