"""
Error taxonomy for the economy core.

Structural errors (``CycleDetected``) stop a turn before it starts.
Assignment-contract errors are raised before any state is touched, so a
caller catching them can rely on the registry being unchanged.
Resource shortages are never errors; see ``mercator.core.resources``.
"""

from __future__ import annotations


class MercatorError(Exception):
    """Base class for all economy-core errors."""


class CycleDetected(MercatorError):
    """The trade route graph contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        path = " -> ".join(self.cycle)
        super().__init__(f"Trade routes form a cycle: {path}")


class InvalidSteering(MercatorError):
    """A transfer was requested from a node that cannot steer there."""


class NoFreeMerchants(MercatorError):
    """The nation has no unassigned merchant left."""


class AlreadyAssigned(MercatorError):
    """The nation already has a merchant at the node."""


class NotAssigned(MercatorError):
    """The nation has no merchant at the node."""


class TurnInProgress(MercatorError):
    """Merchant presences are frozen while a turn is being resolved."""
