from __future__ import annotations

import pytest

from app.access.codes import (
    CODE_ALPHABET,
    generate_codes,
    hash_code,
    is_valid_custom_code,
    normalize_code,
)


def test_generate_codes_returns_unique_codes_from_unambiguous_alphabet() -> None:
    codes = generate_codes(count=50, length=6)

    assert len(codes) == 50
    assert len(set(codes)) == 50
    assert all(len(code) == 6 for code in codes)
    assert all(set(code) <= set(CODE_ALPHABET) for code in codes)
    assert not set("01IO") & set(CODE_ALPHABET)


def test_generate_codes_skips_existing_codes() -> None:
    existing = {"AAAAAA"}
    codes = generate_codes(count=3, length=6, existing_codes=existing)

    assert "AAAAAA" not in codes
    assert set(codes) <= existing


def test_generate_codes_rejects_invalid_arguments() -> None:
    with pytest.raises(ValueError):
        generate_codes(count=0)
    with pytest.raises(ValueError):
        generate_codes(count=1, length=0)


def test_generate_codes_gives_up_when_space_is_exhausted() -> None:
    existing = set(CODE_ALPHABET)
    with pytest.raises(RuntimeError):
        generate_codes(count=1, length=1, existing_codes=existing)


def test_normalize_code_keeps_case() -> None:
    assert normalize_code("  abc123\n") == "abc123"
    assert normalize_code("ABC123") != normalize_code("abc123")


def test_hash_code_is_peppered_and_deterministic() -> None:
    first = hash_code(code="ABC123", pepper="pepper-a")

    assert first == hash_code(code="ABC123", pepper="pepper-a")
    assert first != hash_code(code="ABC123", pepper="pepper-b")
    assert first != hash_code(code="abc123", pepper="pepper-a")
    assert len(first) == 64


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("ABC123", True),
        ("summer-drop_2026", True),
        ("ABC", False),
        ("has space", False),
        ("X" * 33, False),
    ],
)
def test_is_valid_custom_code(code: str, expected: bool) -> None:
    assert is_valid_custom_code(code) is expected
