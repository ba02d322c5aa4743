"""Chain link recorder."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from message_chain.schemas import ChainLink


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def record_link(
    service_id: str,
    contribution: str,
    timestamp: Optional[datetime] = None,
    origin_address: Optional[str] = None,
) -> ChainLink:
    """Build the immutable link for one hop; timestamp defaults to now (UTC)."""
    return ChainLink(
        service=service_id,
        contribution=contribution,
        timestamp=timestamp or utcnow(),
        origin_address=origin_address,
    )
