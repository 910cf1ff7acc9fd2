from __future__ import annotations

import hashlib
import hmac
import re
import secrets

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CUSTOM_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{4,32}$")


def normalize_code(raw_code: str) -> str:
    # Codes are case-sensitive; only surrounding whitespace is insignificant.
    return raw_code.strip()


def is_valid_custom_code(code: str) -> bool:
    return CUSTOM_CODE_PATTERN.fullmatch(code) is not None


def hash_code(*, code: str, pepper: str) -> str:
    digest = hmac.new(
        pepper.encode("utf-8"),
        code.encode("utf-8"),
        hashlib.sha256,
    )
    return digest.hexdigest()


def generate_codes(
    *,
    count: int,
    length: int = 6,
    existing_codes: set[str] | None = None,
) -> list[str]:
    if count <= 0:
        raise ValueError("count must be positive")
    if length <= 0:
        raise ValueError("length must be positive")

    existing = existing_codes if existing_codes is not None else set()
    generated: list[str] = []
    attempts = 0
    max_attempts = max(100, count * 50)

    while len(generated) < count:
        attempts += 1
        if attempts > max_attempts:
            raise RuntimeError("unable to generate unique activation codes")

        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
        if code in existing:
            continue

        existing.add(code)
        generated.append(code)

    return generated
