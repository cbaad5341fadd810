from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Who is acting and from where; passed explicitly into every core operation."""

    principal_id: int | None = None
    username: str | None = None
    ip: str | None = None

    @property
    def actor(self) -> str:
        return self.username or 'anonymous'
