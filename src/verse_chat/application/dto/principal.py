from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated HTTP caller identity extracted from JWT."""

    user_id: int
    roles: list[str] = field(default_factory=list)
