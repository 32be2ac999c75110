"""Tests for identity rotation."""

import random

import pytest

from catalog_crawler.ingest.identity import Identity, IdentityRotator

UAS = ["ua-one Chrome/131", "ua-two Firefox/133", "ua-three Safari/605"]
REFS = ["https://www.google.com/", "https://www.bing.com/"]


def test_next_is_deterministic_with_seeded_rng():
    rotator = IdentityRotator(UAS, REFS, rng=random.Random(42))
    twin = random.Random(42)

    for _ in range(10):
        expected = Identity(twin.choice(UAS), twin.choice(REFS))
        assert rotator.next() == expected


def test_draws_cover_pool():
    rotator = IdentityRotator(UAS, REFS, rng=random.Random(3))
    seen = {rotator.next().user_agent for _ in range(200)}

    assert seen == set(UAS)


def test_headers_carry_identity():
    rotator = IdentityRotator(UAS, REFS, rng=random.Random(0))
    identity = Identity("Mozilla/5.0 Chrome/131.0.0.0 Safari/537.36", "https://www.bing.com/")
    headers = rotator.headers(identity)

    assert headers["User-Agent"] == identity.user_agent
    assert headers["Referer"] == "https://www.bing.com/"
    assert headers["Accept"].startswith("text/html")
    assert headers["Sec-Fetch-Mode"] == "navigate"


def test_firefox_headers_have_no_fetch_metadata():
    rotator = IdentityRotator(UAS, REFS)
    headers = rotator.headers(Identity("Mozilla/5.0 (X11; rv:133.0) Gecko/20100101 Firefox/133.0", REFS[0]))

    assert "Sec-Fetch-Mode" not in headers


def test_identity_is_immutable():
    identity = Identity("ua", "ref")
    with pytest.raises(AttributeError):
        identity.user_agent = "other"


def test_empty_pools_rejected():
    with pytest.raises(ValueError):
        IdentityRotator([], REFS)
    with pytest.raises(ValueError):
        IdentityRotator(UAS, [])
