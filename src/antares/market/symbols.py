"""
Pair catalog management and filtering.

Handles loading, filtering, and looking up the tradable pairs that
define the currency graph.
"""

from collections.abc import Iterable

from antares.config.constants import DEFAULT_EXCLUDED_CURRENCIES, PAIR_STATUS_ONLINE
from antares.core.types import PairInfo, TradingPair


class PairCatalog:
    """
    Manages trading pair metadata.

    Responsibilities:
    - Loading pairs from the exchange catalog
    - Filtering by status and excluded currencies
    - Providing quick lookups by pair id and currency
    """

    __slots__ = ("_pairs", "_by_currency", "_excluded")

    def __init__(self, excluded_currencies: Iterable[str] = DEFAULT_EXCLUDED_CURRENCIES) -> None:
        """
        Initialize empty catalog.

        Args:
            excluded_currencies: Currencies whose pairs are never loaded.
        """
        self._pairs: dict[str, PairInfo] = {}
        self._by_currency: dict[str, list[str]] = {}
        self._excluded = frozenset(excluded_currencies)

    def load(self, pairs: Iterable[TradingPair]) -> int:
        """
        Load and filter pairs.

        Args:
            pairs: Raw catalog entries.

        Returns:
            Number of pairs loaded.
        """
        for pair in pairs:
            if not self.is_usable(pair):
                continue
            self._add_pair(
                PairInfo(pair_id=pair.id, base=pair.base_currency, quote=pair.quote_currency)
            )

        return len(self._pairs)

    def is_usable(self, pair: TradingPair) -> bool:
        """Check if a catalog entry is online and avoids excluded currencies."""
        return (
            pair.status == PAIR_STATUS_ONLINE
            and pair.base_currency not in self._excluded
            and pair.quote_currency not in self._excluded
            and pair.base_currency != pair.quote_currency
        )

    def _add_pair(self, info: PairInfo) -> None:
        """Add pair to internal indexes."""
        self._pairs[info.pair_id] = info
        self._by_currency.setdefault(info.base, []).append(info.pair_id)
        self._by_currency.setdefault(info.quote, []).append(info.pair_id)

    def get(self, pair_id: str) -> PairInfo | None:
        """
        Get pair info by id.

        Args:
            pair_id: Pair id (e.g., "BTC-USD").

        Returns:
            PairInfo or None.
        """
        return self._pairs.get(pair_id)

    def get_all(self) -> list[PairInfo]:
        """Get all pairs, in catalog order."""
        return list(self._pairs.values())

    def get_pairs_for_currency(self, currency: str) -> list[str]:
        """Get the ids of all pairs trading a currency."""
        return self._by_currency.get(currency, [])

    def get_currencies(self) -> set[str]:
        """Get every currency that appears in a loaded pair."""
        return set(self._by_currency)

    def pair_ids_within(self, currencies: Iterable[str]) -> list[str]:
        """
        Get the ids of pairs whose two currencies are both in ``currencies``.

        Args:
            currencies: Allowed currencies (e.g., the graph's nodes after pruning).

        Returns:
            Pair ids, in catalog order.
        """
        allowed = set(currencies)
        return [
            info.pair_id
            for info in self._pairs.values()
            if info.base in allowed and info.quote in allowed
        ]

    @property
    def excluded_currencies(self) -> frozenset[str]:
        return self._excluded

    @property
    def count(self) -> int:
        """Get number of loaded pairs."""
        return len(self._pairs)

    def __contains__(self, pair_id: str) -> bool:
        return pair_id in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)
