"""Result containers for recorded assembly runs.

These dataclasses are plain Python structures intended for logging, testing and
post-processing. They intentionally avoid direct dependence on PyChrono objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class SimulationSample:
    """Mated pairs at one time instant, as `(female body, male body)` names."""

    time: float
    active_mates: list[tuple[str, str]]
    pending: int = 0


@dataclass(slots=True)
class SimulationResult:
    """Accumulated samples produced by a simulation runner."""

    samples: list[SimulationSample] = field(default_factory=list)
    deferred_ticks: int = 0

    def add_sample(self, sample: SimulationSample) -> None:
        """Append one sample to the result sequence."""
        self.samples.append(sample)

    @property
    def final_active_mates(self) -> list[tuple[str, str]]:
        return self.samples[-1].active_mates if self.samples else []
