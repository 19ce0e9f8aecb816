from __future__ import annotations

import random

import pytest

from url_monitor.ui_testing.sampler import get_random_urls
from url_monitor.ui_testing.whitelist import is_whitelisted


@pytest.mark.parametrize(
    ("text", "patterns", "expected"),
    [
        ("Failed to load resource: net::ERR_BLOCKED_BY_CLIENT", ["blocked"], True),
        ("Failed to load resource: net::ERR_BLOCKED_BY_CLIENT", ["BLOCKED_by"], True),
        ("Uncaught TypeError: x is undefined", ["blocked", "favicon"], False),
        ("anything", [], False),
        ("anything", None, False),
        ("", ["blocked"], False),
        ("", [""], True),
        (None, ["x"], False),
        (None, [""], True),
        ("https://www.google-analytics.com/collect", [None, "analytics"], True),
    ],
)
def test_is_whitelisted(text, patterns, expected) -> None:
    assert is_whitelisted(text, patterns) is expected


def test_is_whitelisted_matches_any_pattern() -> None:
    patterns = ["doubleclick.net", "hotjar"]
    assert is_whitelisted("https://static.HOTJAR.com/c/hotjar.js", patterns)
    assert not is_whitelisted("https://cdn.example.com/app.js", patterns)


def test_random_urls_returns_requested_number_of_distinct_urls() -> None:
    urls = [f"https://example.com/{i}" for i in range(10)]
    picked = get_random_urls(urls, 4)
    assert len(picked) == 4
    assert len(set(picked)) == 4
    assert set(picked) <= set(urls)


def test_random_urls_count_larger_than_list_returns_all_once() -> None:
    urls = ["https://a.test", "https://b.test", "https://c.test"]
    picked = get_random_urls(urls, 10)
    assert sorted(picked) == sorted(urls)


def test_random_urls_does_not_mutate_input() -> None:
    urls = [f"https://example.com/{i}" for i in range(6)]
    original = list(urls)
    get_random_urls(urls, 6)
    get_random_urls(urls, 3)
    assert urls == original


def test_random_urls_zero_and_negative_count() -> None:
    urls = ["https://a.test", "https://b.test"]
    assert get_random_urls(urls, 0) == []
    assert get_random_urls(urls, -3) == []
    assert get_random_urls([], 5) == []


def test_random_urls_order_varies_across_calls() -> None:
    urls = [f"https://example.com/{i}" for i in range(8)]
    orders = {tuple(get_random_urls(urls, 8)) for _ in range(50)}
    assert len(orders) > 1


def test_random_urls_seeded_rng_is_reproducible() -> None:
    urls = [f"https://example.com/{i}" for i in range(20)]
    first = get_random_urls(urls, 5, rng=random.Random(7))
    second = get_random_urls(urls, 5, rng=random.Random(7))
    assert first == second
