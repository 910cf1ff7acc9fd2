from __future__ import annotations

import argparse
import asyncio
import csv
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from app.access.codes import generate_codes
from app.access.service import MAX_CODES_PER_BATCH, ActivationCodeService
from app.core.config import get_settings

CONTENT_TYPES = ("playlist", "slideshow")


@dataclass(slots=True)
class IssuedCode:
    code: str
    activation_code_id: int | None = None


def parse_utc_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk activation code generation tool")
    parser.add_argument("--content-type", choices=CONTENT_TYPES, required=True)
    parser.add_argument("--content-id", type=int, required=True)
    parser.add_argument("--created-by", type=int, required=True, help="owner user id")
    parser.add_argument("--count", type=int, default=1)
    parser.add_argument("--max-uses", type=int)
    parser.add_argument("--expires-at", help="ISO datetime")
    parser.add_argument("--output-csv", type=Path)
    parser.add_argument("--dry-run", action="store_true")
    return parser.parse_args(argv)


def _validate_args(args: argparse.Namespace, *, now_utc: datetime) -> None:
    if args.content_id <= 0:
        raise ValueError("--content-id must be positive")
    if not 1 <= args.count <= MAX_CODES_PER_BATCH:
        raise ValueError(f"--count must be in range 1..{MAX_CODES_PER_BATCH}")
    if args.max_uses is not None and args.max_uses <= 0:
        raise ValueError("--max-uses must be positive")
    if args.expires_at is not None and parse_utc_datetime(args.expires_at) <= now_utc:
        raise ValueError("--expires-at must be in the future")


async def _issue_codes(args: argparse.Namespace) -> list[IssuedCode]:
    expires_at = parse_utc_datetime(args.expires_at) if args.expires_at else None
    views = await ActivationCodeService.create_codes_with_retry(
        created_by_user_id=args.created_by,
        content_type=args.content_type,
        content_id=args.content_id,
        count=args.count,
        max_uses=args.max_uses,
        expires_at=expires_at,
    )
    return [IssuedCode(code=view.code, activation_code_id=view.id) for view in views]


def _write_output(path: Path, args: argparse.Namespace, issued: list[IssuedCode]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as file:
        writer = csv.writer(file)
        writer.writerow(
            ["code", "activation_code_id", "content_type", "content_id", "max_uses", "expires_at"]
        )
        for item in issued:
            writer.writerow(
                [
                    item.code,
                    item.activation_code_id or "",
                    args.content_type,
                    args.content_id,
                    args.max_uses if args.max_uses is not None else "",
                    args.expires_at or "",
                ]
            )


async def _run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    _validate_args(args, now_utc=datetime.now(timezone.utc))

    if args.dry_run:
        issued = [
            IssuedCode(code=code)
            for code in generate_codes(
                count=args.count,
                length=get_settings().activation_code_length,
            )
        ]
    else:
        issued = await _issue_codes(args)

    output_csv = args.output_csv or Path("reports/activation_codes_output.csv")
    _write_output(output_csv, args, issued)
    print(  # noqa: T201
        f"generated={len(issued)} inserted={0 if args.dry_run else len(issued)} output={output_csv}"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(_run(argv))


if __name__ == "__main__":
    raise SystemExit(main())
