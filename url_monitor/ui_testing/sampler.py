"""Random selection of URLs for a run."""

from __future__ import annotations

import random
from typing import Sequence


def get_random_urls(urls: Sequence[str], count: int, rng: random.Random | None = None) -> list[str]:
    """Pick up to ``count`` distinct URLs without replacement.

    When ``count`` covers the whole list every URL is returned once, shuffled.
    The input sequence is never modified.
    """
    rng = rng or random.Random()
    count = max(0, min(int(count), len(urls)))
    return rng.sample(list(urls), count)
