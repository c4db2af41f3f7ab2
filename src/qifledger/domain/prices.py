"""Indexed price lookups."""

from bisect import bisect_right
from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from qifledger.domain.entities import Price


class PriceHistory:
    """Price quotes per security, sorted by date for at-or-before lookups."""

    def __init__(self, prices: Iterable[Price]):
        by_security: dict[str, list[Price]] = defaultdict(list)
        for price in prices:
            by_security[price.security_id].append(price)

        self._prices: dict[str, list[Price]] = {}
        self._dates: dict[str, list[date]] = {}
        for security_id, quotes in by_security.items():
            quotes.sort(key=lambda p: p.date)
            self._prices[security_id] = quotes
            self._dates[security_id] = [p.date for p in quotes]

    def at_or_before(self, security_id: str, on_date: date) -> Optional[Price]:
        """Return the latest quote dated on or before on_date, or None."""
        dates = self._dates.get(security_id)
        if not dates:
            return None
        index = bisect_right(dates, on_date)
        if index == 0:
            return None
        return self._prices[security_id][index - 1]
