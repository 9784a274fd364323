"""
Via SDK - UTXO Selection

Pure, deterministic coin selection strategies. Every strategy has the
same shape:

    select(utxos, amount, fee_model) -> Selection

and never performs I/O, so the same candidates always give the same
inputs, fee and change.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..errors import SelectionFailed
from ..fees import FeeModel
from ..models import SelectionStrategy, UTXO


@dataclass(frozen=True)
class Selection:
    """Chosen inputs with the resulting fee and change (0 = no change output)."""
    inputs: Tuple[UTXO, ...]
    fee: int
    change: int

    @property
    def total(self) -> int:
        return sum(utxo.value for utxo in self.inputs)


def _settle(chosen: Sequence[UTXO], amount: int, fee_model: FeeModel) -> Optional[Selection]:
    """
    Fee and change for a fixed input set, or None if it does not cover.

    Change below the model's dust limit is added to the fee instead of
    creating an output.
    """
    n = len(chosen)
    if n == 0:
        return None
    total = sum(utxo.value for utxo in chosen)

    fee = fee_model.fee(n, True)
    change = total - amount - fee
    if change > 0 and change >= fee_model.dust_limit:
        return Selection(tuple(chosen), fee, change)

    fee = fee_model.fee(n, False)
    leftover = total - amount - fee
    if leftover < 0:
        return None
    return Selection(tuple(chosen), fee + leftover, 0)


def _by_value_desc(utxo: UTXO):
    return (-utxo.value, utxo.txid, utxo.vout)


def _by_value_asc(utxo: UTXO):
    return (utxo.value, utxo.txid, utxo.vout)


class Strategy(ABC):
    """UTXO selection strategy."""

    name: str = ""

    @abstractmethod
    def choose(self, utxos: List[UTXO], amount: int, fee_model: FeeModel) -> Optional[Selection]:
        """Return a covering selection or None."""
        pass

    def select(self, utxos: Sequence[UTXO], amount: int, fee_model: FeeModel) -> Selection:
        """
        Select inputs covering ``amount`` plus fee.

        Raises:
            SelectionFailed: No subset of ``utxos`` covers the target.
        """
        if amount <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")

        candidates = sorted(utxos, key=_by_value_desc)
        selection = self.choose(candidates, amount, fee_model) if candidates else None
        if selection is None:
            available = sum(utxo.value for utxo in candidates)
            required = amount + fee_model.fee(max(len(candidates), 1), False)
            raise SelectionFailed(required, available, self.name)
        return selection


class _Accumulate(Strategy):
    """Add inputs in a fixed order until they cover the target."""

    order = staticmethod(_by_value_desc)

    def choose(self, utxos, amount, fee_model):
        chosen: List[UTXO] = []
        for utxo in sorted(utxos, key=self.order):
            chosen.append(utxo)
            selection = _settle(chosen, amount, fee_model)
            if selection is not None:
                return selection
        return None


class LargestFirst(_Accumulate):
    """Greedy: biggest outputs first. Fewest inputs in the common case."""
    name = SelectionStrategy.LARGEST_FIRST.value
    order = staticmethod(_by_value_desc)


class SmallestFirst(_Accumulate):
    """Spend small outputs first (consolidates dust over time)."""
    name = SelectionStrategy.SMALLEST_FIRST.value
    order = staticmethod(_by_value_asc)


class SpendAll(Strategy):
    """Spend every candidate."""
    name = SelectionStrategy.ALL.value

    def choose(self, utxos, amount, fee_model):
        return _settle(utxos, amount, fee_model)


class MinChange(Strategy):
    """
    Depth-first subset search minimizing the excess over amount + fee.

    The search is bounded by ``max_tries`` visited nodes; ties are broken
    by fewer inputs, then by visit order, so results are deterministic.
    Falls back to largest-first when the search finds nothing.
    """
    name = SelectionStrategy.MIN_CHANGE.value

    def __init__(self, max_tries: int = 100_000):
        self.max_tries = max_tries

    def choose(self, utxos, amount, fee_model):
        values = [utxo.value for utxo in utxos]
        suffix = [0] * (len(values) + 1)
        for i in range(len(values) - 1, -1, -1):
            suffix[i] = suffix[i + 1] + values[i]

        best: Optional[Tuple[int, int, Tuple[int, ...]]] = None
        tries = 0
        stack: List[Tuple[int, Tuple[int, ...], int]] = [(0, (), 0)]

        while stack and tries < self.max_tries:
            index, picked, total = stack.pop()
            tries += 1

            if picked:
                excess = total - amount - fee_model.fee(len(picked), False)
                if excess >= 0:
                    key = (excess, len(picked), picked)
                    if best is None or key[:2] < best[:2]:
                        best = key
                    if excess == 0:
                        break
                    continue

            if index >= len(values):
                continue
            if total + suffix[index] < amount:
                continue

            # Explore "include" first so it is popped first.
            stack.append((index + 1, picked, total))
            stack.append((index + 1, picked + (index,), total + values[index]))

        if best is None:
            return LargestFirst().choose(utxos, amount, fee_model)
        return _settle([utxos[i] for i in best[2]], amount, fee_model)


STRATEGIES: Dict[SelectionStrategy, Strategy] = {
    SelectionStrategy.LARGEST_FIRST: LargestFirst(),
    SelectionStrategy.SMALLEST_FIRST: SmallestFirst(),
    SelectionStrategy.MIN_CHANGE: MinChange(),
    SelectionStrategy.ALL: SpendAll(),
}


def get_strategy(strategy: Union[SelectionStrategy, str, Strategy, None] = None) -> Strategy:
    """Resolve a strategy by enum, name or instance. Defaults to largest-first."""
    if strategy is None:
        return STRATEGIES[SelectionStrategy.LARGEST_FIRST]
    if isinstance(strategy, Strategy):
        return strategy
    return STRATEGIES[SelectionStrategy(strategy)]


def select_utxos(
    utxos: Sequence[UTXO],
    amount: int,
    fee_model: FeeModel,
    strategy: Union[SelectionStrategy, str, Strategy, None] = None,
) -> Selection:
    """Run ``strategy`` (default largest-first) over ``utxos``."""
    return get_strategy(strategy).select(utxos, amount, fee_model)
