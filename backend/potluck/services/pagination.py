"""
Limit/offset parsing for the list endpoints.

Read paths stay permissive: anything that is not a usable number falls back
to the default instead of producing a 400.
"""

from dataclasses import dataclass
from typing import Optional

# Widest integer PostgreSQL and SQLite can bind
MAX_INT64 = 2**63 - 1


@dataclass(frozen=True)
class Page:
    limit: int
    offset: int


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    if abs(value) > MAX_INT64:
        return None
    return value


def parse_pagination(
    limit: Optional[str],
    offset: Optional[str],
    default_limit: int = 10,
    max_limit: int = 100,
) -> Page:
    """
    Values outside the 64-bit range count as malformed.

    limit:  missing, malformed or < 1 → default_limit; above max_limit → max_limit
    offset: missing, malformed or negative → 0
    """
    parsed_limit = _parse_int(limit)
    if parsed_limit is None or parsed_limit < 1:
        parsed_limit = default_limit
    parsed_limit = min(parsed_limit, max_limit)

    parsed_offset = _parse_int(offset)
    if parsed_offset is None or parsed_offset < 0:
        parsed_offset = 0

    return Page(limit=parsed_limit, offset=parsed_offset)
