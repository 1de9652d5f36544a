# grovi/services/weighted.py
from __future__ import annotations

import random
from typing import Callable, Sequence, TypeVar

from grovi.services.errors import ConfigError

T = TypeVar("T")


def weighted_choice(
    items: Sequence[T],
    *,
    weight: Callable[[T], float],
    rng: random.Random | None = None,
) -> T:
    """
    Pick one item with probability weight(item) / sum(weights).

    Walks the list subtracting weights from r in [0, total); the first item that
    brings the remainder to <= 0 wins. Float drift past the end falls back to
    the last item. Zero-weight items are skipped so they can never win, even
    when r lands exactly on 0.

    Raises ConfigError for an empty list, a negative weight or a zero total.
    """
    if not items:
        raise ConfigError("weight table is empty")

    weights = [float(weight(it)) for it in items]
    if any(w < 0 for w in weights):
        raise ConfigError("weight table has negative weights")

    total = sum(weights)
    if total <= 0:
        raise ConfigError("weight table sums to zero")

    r = (rng or random).random() * total
    for it, w in zip(items, weights):
        if w <= 0:
            continue
        r -= w
        if r <= 0:
            return it

    # float edge: return the last item that can actually win
    for it, w in zip(reversed(items), reversed(weights)):
        if w > 0:
            return it
    return items[-1]
