"""Configuration dataclasses for assembly simulations.

This module defines the options used by the mate engine, the mate model
variants and the simulation runner. The dataclasses are intentionally
lightweight so they can be created in user scripts and tests without importing
PyChrono types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


ContactModel = Literal["NSC", "SMC"]
RampShape = Literal["linear", "exponential"]


@dataclass(slots=True)
class EngineConfig:
    """Global options of an assembly engine.

    Attributes:
        tf_world_frame: Frame name that broadcast transforms are relative to.
        broadcast_tf: Whether frame/marker introspection is requested.
        publish_active_mates: Whether the host publishes the active mate list.
        updates_per_second: Scanner rate in simulated seconds.
        autostart_scanner: Start the scanner thread on the first commit step.
    """

    tf_world_frame: str = "world"
    broadcast_tf: bool = False
    publish_active_mates: bool = False
    updates_per_second: float = 10.0
    autostart_scanner: bool = True

    @property
    def update_period(self) -> float:
        """Return the simulated time between two scanner cycles."""
        return 1.0 / self.updates_per_second


@dataclass(slots=True)
class RampConfig:
    """Stiffness ramp applied while a mate is entering or leaving `MATED`.

    `duration` is in simulated seconds; a zero duration switches stiffness in a
    single tick. `sharpness` only affects the exponential shape.
    """

    duration: float = 0.1
    shape: RampShape = "linear"
    sharpness: float = 5.0


@dataclass(slots=True)
class ProximityThresholds:
    """Pose error tolerances of the proximity mate model.

    The engage tolerances decide when an unmated pair is close enough to mate.
    The separation tolerances are usually looser and decide when a mated pair
    has drifted apart far enough to release.
    """

    max_trans_err: float = 0.01
    max_rot_err: float = 0.1
    sep_trans_err: float = 0.05
    sep_rot_err: float = 0.5


@dataclass(slots=True)
class DipoleParameters:
    """Field parameters of the dipole mate model.

    The attraction score of a pair is
    ``max(0, cos(angle)) ** alignment_exponent / (1 + (distance / range) ** falloff)``.
    A pair engages at `engage_threshold` and releases below `release_threshold`.
    """

    range: float = 0.02
    falloff: float = 3.0
    alignment_exponent: float = 2.0
    engage_threshold: float = 0.5
    release_threshold: float = 0.1


@dataclass(slots=True)
class SolverTuning:
    """Low-level solver and collision tuning parameters."""

    collision_envelope: float = 0.003
    collision_margin: float = 0.002
    single_thread: bool = True


@dataclass(slots=True)
class SimulationConfig:
    """Top-level settings for a simulation run.

    Attributes:
        contact_model: Contact formulation to use (`"NSC"` or `"SMC"`).
        dt: Fixed integration time step in seconds.
        t_end: End time for the run in seconds.
        gravity: World gravity vector `(gx, gy, gz)` in m/s^2.
        sample_every_n_steps: Record state every N solver steps.
        solver: Optional solver/collision tuning parameters.
    """

    contact_model: ContactModel = "NSC"
    dt: float = 1e-3
    t_end: float = 1.0
    gravity: tuple[float, float, float] = (0.0, -9.81, 0.0)
    sample_every_n_steps: int = 10
    solver: SolverTuning = field(default_factory=SolverTuning)
