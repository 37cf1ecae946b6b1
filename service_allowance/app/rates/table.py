"""
In-memory rate table.
"""

from typing import Dict, Iterable, List, Optional, Tuple
from datetime import date

from .models import Rate


class RateTable:
    """Active allowance rates keyed by (group, tier)."""

    def __init__(self, rates: Optional[Iterable[Rate]] = None):
        self._rates: List[Rate] = list(rates or [])

    def __len__(self) -> int:
        return len(self._rates)

    def load_rates(self, rates: Iterable[Rate]):
        """Replace all rates."""
        self._rates = list(rates)

    def find_by_group_and_tier(self, allowance_group: str, tier: str,
                               as_of: Optional[date] = None) -> Optional[Rate]:
        """Latest active rate for the group and tier, optionally as of a date."""
        candidates = [
            rate for rate in self._rates
            if rate.is_active
            and rate.allowance_group == allowance_group
            and rate.tier == tier
            and (as_of is None or rate.effective_date <= as_of)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda r: r.effective_date)

    def active_groups_and_tiers(self) -> List[Rate]:
        """Current rate of every active (group, tier), ordered by group then tier."""
        latest: Dict[Tuple[str, str], Rate] = {}
        for rate in self._rates:
            if not rate.is_active:
                continue
            key = (rate.allowance_group, rate.tier)
            current = latest.get(key)
            if current is None or rate.effective_date > current.effective_date:
                latest[key] = rate
        return [latest[key] for key in sorted(latest)]
