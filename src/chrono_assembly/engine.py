"""Mate engine: background scanner and per-tick commit step.

Two flows share the engine:

- the scanner thread evaluates every compatible (female, male) mate point
  pair at a low rate paced by simulated time and schedules transitions;
- the commit step runs on the simulation thread every tick, applies the
  scheduled transitions and advances the stiffness ramps.

`update_lock` guards mate creation, `pending_state` writes and the pending
set. The commit step only ever tries the lock: when the scanner holds it the
drain is deferred to a later tick and the simulation step is never stalled.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from .atoms import Atom, MatePoint, build_atoms
from .backend import ConstraintFactory, PoseOracle
from .config import EngineConfig
from .errors import MateConstructionError
from .mate import Mate
from .mate_table import MateTable
from .models import MateState, Transition
from .transforms import Pose

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActiveMate:
    """Body names of a mated pair, as published in an active mate list."""

    female: str
    male: str
    joint: str


class AssemblyEngine:
    """Engine context shared by the scanner and the commit step.

    Args:
        atoms: Atoms of the assembly.
        factory: Constraint factory used to build mate joints.
        config: Engine options.
        clock: Optional callable returning the simulated time. When omitted,
            simulated time is accumulated from the `dt` of each commit step.
    """

    def __init__(
        self,
        atoms: Iterable[Atom],
        factory: ConstraintFactory,
        config: Optional[EngineConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config or EngineConfig()
        self.atoms: list[Atom] = list(atoms)
        self.table = MateTable(factory)
        self.update_lock = threading.Lock()
        self.deferred_ticks = 0

        self._pending: dict[Mate, None] = {}
        self._clock = clock
        self._elapsed = 0.0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._autostarted = False

    @classmethod
    def from_description(
        cls,
        description,
        bodies: Iterable[Any],
        oracle: PoseOracle,
        factory: ConstraintFactory,
        clock: Optional[Callable[[], float]] = None,
    ) -> "AssemblyEngine":
        """Build an engine for the bodies of a loaded `AssemblyDescription`."""
        atoms = build_atoms(bodies, description.atom_models, oracle)
        logger.info(f"Assembly engine with {len(atoms)} atoms")
        return cls(atoms, factory, config=description.engine, clock=clock)

    @property
    def sim_time(self) -> float:
        if self._clock is not None:
            return float(self._clock())
        return self._elapsed

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the scanner thread."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._scan_loop, name="mate-scanner", daemon=True)
        self._thread.start()
        logger.info(f"Scanner started at {self.config.updates_per_second:g} updates per simulated second")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the scanner and wait for its current cycle to finish.

        When `timeout` expires first the thread stays referenced, so `running`
        keeps reporting it and `start` will not launch a second scanner.
        """
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        thread.join(timeout)
        if thread.is_alive():
            logger.warning(f"Scanner did not stop within {timeout} s")
            return
        self._thread = None
        logger.info("Scanner stopped")

    def __enter__(self) -> "AssemblyEngine":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _scan_loop(self) -> None:
        period = self.config.update_period
        last_update = self.sim_time
        try:
            while not self._stop_event.is_set():
                now = self.sim_time
                if now < last_update + period:
                    self._stop_event.wait(min(last_update + period - now, period))
                else:
                    last_update = now
                    self.scan_once()
        except Exception:
            logger.exception("Scanner loop failed")
            raise

    def scan_once(self) -> int:
        """Run one scanner cycle and return the number of scheduled transitions."""
        atom_poses = {atom: atom.world_pose() for atom in self.atoms}
        scheduled = 0

        for female_atom in self.atoms:
            female_atom_pose = atom_poses[female_atom]
            for female in female_atom.female_mate_points:
                female_world = female_atom_pose * female.pose

                for male_atom in self.atoms:
                    if male_atom is female_atom:
                        continue
                    male_atom_pose = atom_poses[male_atom]
                    for male in male_atom.male_mate_points:
                        if male.mate_model is not female.mate_model:
                            continue
                        if self._schedule(female, male, female_world, male_atom_pose * male.pose):
                            scheduled += 1
        return scheduled

    def _schedule(self, female: MatePoint, male: MatePoint, female_world: Pose, male_world: Pose) -> bool:
        with self.update_lock:
            try:
                mate = self.table.get_or_create(female, male)
            except MateConstructionError as exc:
                logger.error(f"{exc}; pair disabled for this run")
                return False

            # Never overwrite a request the commit step has not consumed yet
            if mate is None or mate.pending_state is not MateState.NONE:
                return False

            transition = mate.model.evaluate(mate, female_world, male_world)
            if transition is Transition.NONE:
                return False

            mate.pending_state = transition.target
            self._pending[mate] = None
            return True

    def on_update(self, dt: float) -> bool:
        """Per-tick entry point of the host simulation.

        Returns:
            Whether scheduled transitions were drained this tick.
        """
        if self.config.autostart_scanner and not self._autostarted:
            self._autostarted = True
            self.start()

        self._elapsed += dt
        drained = self._drain_pending()

        for mate in self.table.mates():
            mate.model.advance(mate, dt)
        return drained

    def _drain_pending(self) -> bool:
        if not self.update_lock.acquire(blocking=False):
            self.deferred_ticks += 1
            return False
        try:
            for mate in list(self._pending):
                requested = mate.pending_state
                mate.pending_state = MateState.NONE
                del self._pending[mate]
                mate.model.commit(mate, requested)
        finally:
            self.update_lock.release()
        return True

    @property
    def mates(self) -> tuple[Mate, ...]:
        return self.table.mates()

    @property
    def failed_pairs(self) -> dict:
        return dict(self.table.failed)

    @property
    def pending_count(self) -> int:
        """Number of scheduled transitions, read without taking the lock."""
        return len(self._pending)

    def pending_mates(self) -> list[Mate]:
        with self.update_lock:
            return list(self._pending)

    def active_mates(self) -> list[ActiveMate]:
        """Pairs whose joint is fully engaged."""
        return [
            ActiveMate(female=mate.female.atom.name, male=mate.male.atom.name, joint=mate.name)
            for mate in self.table.mates()
            if mate.committed_state is MateState.MATED
        ]
