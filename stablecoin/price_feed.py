"""
price_feed.py - Price feed sources for collateral valuation

Classes:
- RoundData: one answer from a feed, aggregator style
- PriceFeed: Protocol the oracle adapter consumes
- StaticPriceFeed: a settable feed (the usual test double for aggregators)
- TimeSeriesPriceFeed: answers follow a clock, for crash simulations

Answers are signed integers with ``decimals`` decimal places (8 for USD
pairs). Only ``answer`` is consumed by the engine; staleness and round
bookkeeping are reported but not checked.
"""

from __future__ import annotations
from bisect import bisect_right
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Tuple, runtime_checkable

from .core import LedgerView, OracleUnavailable


@dataclass(frozen=True, slots=True)
class RoundData:
    """A single feed round."""
    round_id: int
    answer: int
    started_at: datetime
    updated_at: datetime
    answered_in_round: int


@runtime_checkable
class PriceFeed(Protocol):
    """
    Protocol for price feeds.

    Implementations report the latest round; the answer is scaled by
    10 ** decimals.
    """
    decimals: int

    def latest_round_data(self) -> RoundData:
        ...


class StaticPriceFeed:
    """
    Feed with a single settable answer.

    Every update_answer() opens a new round, so round ids increase the way
    an on-chain aggregator's do.
    """

    def __init__(self, answer: int, decimals: int = 8, updated_at: Optional[datetime] = None):
        self.decimals = decimals
        self._rounds: List[RoundData] = []
        self.update_answer(answer, updated_at)

    def update_answer(self, answer: int, updated_at: Optional[datetime] = None) -> None:
        timestamp = updated_at or datetime(1970, 1, 1)
        round_id = len(self._rounds) + 1
        self._rounds.append(RoundData(round_id, int(answer), timestamp, timestamp, round_id))

    @property
    def latest_answer(self) -> int:
        return self._rounds[-1].answer

    def latest_round_data(self) -> RoundData:
        return self._rounds[-1]

    def get_round_data(self, round_id: int) -> RoundData:
        if not 1 <= round_id <= len(self._rounds):
            raise KeyError(f"No round {round_id}")
        return self._rounds[round_id - 1]

    def __repr__(self):
        return f"StaticPriceFeed(answer={self.latest_answer}, decimals={self.decimals})"


class TimeSeriesPriceFeed:
    """
    Feed whose answer is the most recent observation at or before the
    clock's current time.

    Supports two initialization patterns:
    - Empty initialization for incremental observations via add_answer()
    - Batch initialization with a complete path for simulations

    Example:
        feed = TimeSeriesPriceFeed(ledger, [
            (datetime(2025, 1, 1), 2000 * 10 ** 8),
            (datetime(2025, 1, 2), 18 * 10 ** 8),
        ])
    """

    def __init__(
        self,
        clock: LedgerView,
        path: Optional[List[Tuple[datetime, int]]] = None,
        decimals: int = 8,
    ):
        self.clock = clock
        self.decimals = decimals
        self._history: List[Tuple[datetime, int]] = sorted(path or [], key=lambda x: x[0])

    def add_answer(self, timestamp: datetime, answer: int) -> None:
        self._history.append((timestamp, int(answer)))
        self._history.sort(key=lambda x: x[0])

    def latest_round_data(self) -> RoundData:
        """
        Raises:
            OracleUnavailable: If there is no observation at or before now
        """
        now = self.clock.current_time
        timestamps = [ts for ts, _ in self._history]
        idx = bisect_right(timestamps, now)
        if idx == 0:
            raise OracleUnavailable(f"No price observation at or before {now}")
        timestamp, answer = self._history[idx - 1]
        return RoundData(idx, answer, timestamp, timestamp, idx)

    def __repr__(self):
        return f"TimeSeriesPriceFeed({len(self._history)} observations, decimals={self.decimals})"
