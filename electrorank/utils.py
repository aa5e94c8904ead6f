"""General utility helpers."""
from __future__ import annotations

import json
import logging
import math
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


def load_json(path: Path, default: Dict[str, Any] | list | None = None) -> Any:
    """Load a JSON file returning a default value if it does not exist."""

    if not path.exists():
        return default if default is not None else {}
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def dump_json(path: Path, data: Any) -> None:
    """Persist JSON data to disk atomically, ensuring the parent folder exists."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_text_atomic(path: Path, content: str) -> None:
    """Write a text document next to its final location and swap it in."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def timestamp() -> str:
    """Return an ISO-8601 timestamp in UTC."""

    return datetime.now(timezone.utc).isoformat()


def env_int(
    name: str,
    default: int,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    """Parse an integer environment variable, falling back on bad input."""

    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %s", name, raw, default)
        return default
    if minimum is not None and value < minimum:
        logger.warning("Ignoring %s=%s below minimum %s; using %s", name, value, minimum, default)
        return default
    if maximum is not None and value > maximum:
        logger.warning("Ignoring %s=%s above maximum %s; using %s", name, value, maximum, default)
        return default
    return value


def parse_number(value: object) -> float | None:
    """Return a finite float for numeric values or strings such as ``"74,999"``."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        candidate = value.strip().replace(",", "").lstrip("₹$").strip()
        if not candidate:
            return None
        try:
            number = float(candidate)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def format_price(value: float | int | None) -> str:
    """Format a price with thousands separators, dropping a zero fraction."""

    amount = float(value or 0)
    if amount.is_integer():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"


def format_count(value: int | None) -> str:
    return f"{int(value or 0):,}"


_UNSAFE_SEGMENT = re.compile(r"[^A-Za-z0-9_-]+")


def path_segment(value: str) -> str:
    """Return ``value`` reduced to a single safe path component.

    Case is kept so product ids stay recognisable; separators and dots are
    collapsed to ``-``.
    """

    segment = _UNSAFE_SEGMENT.sub("-", str(value).strip()).strip("-")
    return segment or "item"
