"""Trait contract.

A trait is a composable customization step: it reads the Environment and
adds or amends desired objects in ``env.resources``. Traits declare where
they run through ``order`` and ``requires``; the catalog turns that into a
single static order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from integration_operator.trait.environment import Environment


class Trait(ABC):
    """Base class for pipeline traits.

    Subclasses set ``id`` and ``order`` and implement ``apply``. ``apply``
    raises to fail the pass; it must derive its output from the Environment
    only, so repeated passes over unchanged inputs produce the same objects.
    """

    id: ClassVar[str]
    order: ClassVar[int] = 0
    requires: ClassVar[tuple[str, ...]] = ()

    def applies_to(self, env: Environment) -> bool:
        return True

    @abstractmethod
    async def apply(self, env: Environment) -> None:
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r}, order={self.order})"


__all__ = ["Trait"]
