"""Reconciliation action contract."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from integration_operator.apis import Integration


@runtime_checkable
class Action(Protocol):
    """One step of the Integration state machine.

    The dispatcher offers an Integration to each action in turn and runs the
    first whose ``can_handle`` accepts it. ``handle`` returns the updated
    Integration, or None when nothing changed.
    """

    name: str

    def can_handle(self, integration: Integration) -> bool:
        ...

    async def handle(self, integration: Integration) -> Integration | None:
        ...


__all__ = ["Action"]
