"""Registry of every mate observed by the scanner."""

from __future__ import annotations

import logging
from typing import Iterator

from .atoms import MatePoint
from .backend import ConstraintFactory
from .errors import MateConstructionError
from .mate import Mate

logger = logging.getLogger(__name__)


class MateTable:
    """Two-level map `female mate point -> male mate point -> Mate`.

    Entries are created lazily on first observation and never removed, so a
    pair keeps its state across scans. Pairs whose joint could not be built
    are remembered in `failed` and are never rebuilt.

    The table does no locking of its own; the engine serializes writers.
    """

    def __init__(self, factory: ConstraintFactory):
        self._factory = factory
        self._table: dict[MatePoint, dict[MatePoint, Mate]] = {}
        self._mates: list[Mate] = []
        self.failed: dict[tuple[MatePoint, MatePoint], MateConstructionError] = {}

    def get(self, female: MatePoint, male: MatePoint) -> Mate | None:
        return self._table.get(female, {}).get(male)

    def get_or_create(self, female: MatePoint, male: MatePoint) -> Mate | None:
        """Return the mate of a pair, creating it on first use.

        Returns ``None`` for pairs whose construction failed earlier.

        Raises:
            MateConstructionError: The first time construction of a pair fails.
        """
        by_male = self._table.setdefault(female, {})
        mate = by_male.get(male)
        if mate is not None:
            return mate
        if (female, male) in self.failed:
            return None

        try:
            mate = Mate.create(self._factory, female, male)
        except MateConstructionError as exc:
            self.failed[(female, male)] = exc
            raise

        by_male[male] = mate
        self._mates.append(mate)
        logger.debug(f"Mate table holds {len(self._mates)} mates")
        return mate

    def mates(self) -> tuple[Mate, ...]:
        """Snapshot of all mates in creation order."""
        return tuple(self._mates)

    def __iter__(self) -> Iterator[Mate]:
        return iter(self.mates())

    def __len__(self) -> int:
        return len(self._mates)
