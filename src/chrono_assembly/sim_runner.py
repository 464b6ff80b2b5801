"""Simulation stepping and sampling.

`SimulationRunner` advances a built scene with a fixed step, runs the mate
engine's commit step after every physics step and records the active mates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import SimulationConfig
from .results import SimulationResult, SimulationSample

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SimulationRunner:
    """Execute a configured simulation and collect sampled outputs."""

    config: SimulationConfig

    def run(self, scene) -> SimulationResult:
        """Advance a built scene and record samples.

        Expected input:
        - `scene.system`: object with `DoStepDynamics(dt)`
        - `scene.engine`: `AssemblyEngine` driven once per step

        The engine's scanner is stopped before returning.

        Returns:
            `SimulationResult` containing recorded samples.
        """
        cfg = self.config
        if cfg.dt <= 0.0:
            raise ValueError("config.dt must be > 0")
        if cfg.sample_every_n_steps <= 0:
            raise ValueError("config.sample_every_n_steps must be > 0")

        steps = int(round(cfg.t_end / cfg.dt))
        result = SimulationResult()
        engine = scene.engine
        logger.info(f"Running {steps} steps of {cfg.dt:g} s")

        try:
            for step in range(1, steps + 1):
                scene.system.DoStepDynamics(cfg.dt)
                engine.on_update(cfg.dt)
                if step % cfg.sample_every_n_steps == 0 or step == steps:
                    result.add_sample(
                        SimulationSample(
                            time=step * cfg.dt,
                            active_mates=[(m.female, m.male) for m in engine.active_mates()],
                            pending=engine.pending_count,
                        )
                    )
        finally:
            engine.stop()

        result.deferred_ticks = engine.deferred_ticks
        logger.info(f"Run finished with {len(result.final_active_mates)} active mates")
        return result
