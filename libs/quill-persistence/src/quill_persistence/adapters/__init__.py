"""Storage adapters and shared paging validation."""

MAX_QUERY_LIMIT = 1000
MIN_QUERY_LIMIT = 1


def _validate_limit(limit: int) -> int:
    """Reject non-positive limits and cap large ones at ``MAX_QUERY_LIMIT``."""
    if limit < MIN_QUERY_LIMIT:
        raise ValueError(f"limit must be >= {MIN_QUERY_LIMIT}, got {limit}")
    return min(limit, MAX_QUERY_LIMIT)


def _validate_offset(offset: int) -> int:
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    return offset
