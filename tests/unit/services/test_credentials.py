"""
Unit tests for rental ID and access key issuance.
"""

from __future__ import annotations

import hashlib
import re

import pytest

from trailer_booking.services.credentials import AccessCredentials

RENTAL_ID_RE = re.compile(r"^JLA-\d{6}$")


@pytest.fixture
def creds() -> AccessCredentials:
    return AccessCredentials(pepper="pepper-one")


@pytest.mark.unit
def test_rental_id_format(creds: AccessCredentials) -> None:
    for _ in range(200):
        rental_id = creds.generate_rental_id()
        assert RENTAL_ID_RE.match(rental_id)
        assert 100000 <= int(rental_id[4:]) <= 999999


@pytest.mark.unit
def test_access_key_is_six_digits(creds: AccessCredentials) -> None:
    for _ in range(200):
        key = creds.generate_access_key()
        assert key.isdigit() and len(key) == 6
        assert 100000 <= int(key) <= 999999


@pytest.mark.unit
def test_hash_is_sha256_of_key_and_pepper(creds: AccessCredentials) -> None:
    expected = hashlib.sha256(b"482913pepper-one").hexdigest()
    assert creds.hash_access_key("482913") == expected


@pytest.mark.unit
def test_pepper_changes_hash() -> None:
    a = AccessCredentials(pepper="pepper-one").hash_access_key("482913")
    b = AccessCredentials(pepper="pepper-two").hash_access_key("482913")
    assert a != b


@pytest.mark.unit
def test_issue_returns_matching_hash(creds: AccessCredentials) -> None:
    issued = creds.issue()

    assert RENTAL_ID_RE.match(issued.rental_id)
    assert issued.access_key_hash == creds.hash_access_key(issued.access_key)
    assert "access_key" not in repr(issued)


@pytest.mark.unit
def test_matches_requires_exact_key(creds: AccessCredentials) -> None:
    stored = creds.hash_access_key("482913")

    assert creds.matches("482913", stored)
    assert not creds.matches("482914", stored)
    assert not creds.matches(" 482913", stored)
    assert not creds.matches("48291", stored)
    assert not creds.matches("482913", None)
