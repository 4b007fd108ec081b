"""
Closed set of nation-stat effect kinds.

Every modifier that touches a nation stat is keyed by ``EffectKind``
rather than a free-form string, so an unknown effect is a ``ValueError``
at construction time instead of a silently ignored dict key.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator


class EffectKind(Enum):
    """Nation stats that economy effects can modify."""
    ECONOMY = "economy"
    STABILITY = "stability"
    MILITARY = "military"
    INNOVATION = "innovation"
    PRESTIGE = "prestige"


class StatDeltas:
    """Additive stat modifiers keyed by ``EffectKind``.

    Absent kinds read as 0.0. ``as_dict()`` only reports kinds that were
    explicitly set, which is what the display layer shows.
    """

    def __init__(self, values: dict[EffectKind | str, float] | None = None):
        self._values: dict[EffectKind, float] = {}
        for kind, value in (values or {}).items():
            self.set(kind, value)

    def set(self, kind: EffectKind | str, value: float) -> None:
        self._values[EffectKind(kind)] = float(value)

    def add(self, kind: EffectKind | str, value: float) -> None:
        kind = EffectKind(kind)
        self._values[kind] = self._values.get(kind, 0.0) + float(value)

    def get(self, kind: EffectKind | str) -> float:
        return self._values.get(EffectKind(kind), 0.0)

    def __getitem__(self, kind: EffectKind | str) -> float:
        return self.get(kind)

    def __contains__(self, kind: object) -> bool:
        try:
            return EffectKind(kind) in self._values
        except ValueError:
            return False

    def __iter__(self) -> Iterator[EffectKind]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StatDeltas):
            return self._values == other._values
        if isinstance(other, dict):
            return self.as_dict() == {
                EffectKind(k).value: v for k, v in other.items()
            }
        return NotImplemented

    def __repr__(self) -> str:
        return f"StatDeltas({self.as_dict()!r})"

    def as_dict(self) -> dict[str, float]:
        return {kind.value: value for kind, value in self._values.items()}
