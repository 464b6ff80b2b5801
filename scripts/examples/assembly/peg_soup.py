"""Pegs dropped onto sockets, mated by proximity.

Purpose
-------
Application-level example showing how the reusable code in
``src/chrono_assembly`` assembles a scene and drives the mate engine:

- build fixed sockets on a floor and one free peg above each socket,
- run the background scanner paced by simulated time,
- commit mate transitions once per physics step,
- report the mated pairs as the pegs settle.

Set ``VISUALIZE = True`` to watch the scene in Irrlicht instead of running
headless.

Running
-------
Run from the repository root:

    python scripts/examples/assembly/peg_soup.py

Requirements
------------
- A PyChrono installation (``pychrono.irrlicht`` only when visualizing).
- Either ``pip install -e .`` or direct repo execution (this script adds a local
  ``src/`` path fallback so it can run without installation during development).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pychrono as chrono

REPO_ROOT = Path(__file__).resolve().parents[3]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from chrono_assembly.compat import sim_time
from chrono_assembly.config import SimulationConfig
from chrono_assembly.frames import joint_frames
from chrono_assembly.logging_config import setup_logging
from chrono_assembly.scenes.peg_soup import PegSoupLayout, build_peg_soup_scene
from chrono_assembly.sim_runner import SimulationRunner

VISUALIZE = False
PEG_COUNT = 4
DROP_HEIGHT = 0.02  # m above the socket tops
LOG_LEVEL = logging.INFO

logger = logging.getLogger("chrono_assembly.examples.peg_soup")


def run_headless(sim_cfg: SimulationConfig, layout: PegSoupLayout) -> None:
    scene = build_peg_soup_scene(sim_cfg, layout)
    result = SimulationRunner(sim_cfg).run(scene)

    for sample in result.samples:
        logger.info(f"t={sample.time:5.2f}s mated={len(sample.active_mates)} pending={sample.pending}")
    for female, male in result.final_active_mates:
        logger.info(f"{male} seated on {female}")
    if result.deferred_ticks:
        logger.info(f"{result.deferred_ticks} commit steps were deferred by the scanner")


def run_visual(sim_cfg: SimulationConfig, layout: PegSoupLayout) -> None:
    try:
        import pychrono.irrlicht as chronoirr
    except ImportError as exc:
        raise SystemExit(
            "pychrono.irrlicht is required for visualization. "
            "Install a PyChrono build with Irrlicht support."
        ) from exc

    scene = build_peg_soup_scene(sim_cfg, layout)
    vis = chronoirr.ChVisualSystemIrrlicht()
    vis.AttachSystem(scene.system)
    vis.SetWindowSize(1280, 720)
    vis.SetWindowTitle("Peg soup (proximity mates)")
    vis.Initialize()
    vis.AddSkyBox()
    vis.AddTypicalLights()
    vis.AddCamera(chrono.ChVectorD(0.0, 0.5, 1.0), chrono.ChVectorD(0.0, 0.1, 0.0))

    next_print = 0.0
    with scene.engine as engine:
        while vis.Run():
            vis.BeginScene()
            vis.Render()
            vis.EndScene()
            scene.system.DoStepDynamics(sim_cfg.dt)
            engine.on_update(sim_cfg.dt)

            t = sim_time(scene.system)
            if t >= next_print:
                names = ", ".join(frame.name for frame in joint_frames(engine)) or "-"
                logger.info(f"t={t:5.2f}s joints: {names}")
                next_print += 0.5


def main() -> None:
    setup_logging(LOG_LEVEL)
    sim_cfg = SimulationConfig(contact_model="NSC", dt=1e-3, t_end=2.0, sample_every_n_steps=250)
    layout = PegSoupLayout(count=PEG_COUNT, drop_height=DROP_HEIGHT)
    if VISUALIZE:
        run_visual(sim_cfg, layout)
    else:
        run_headless(sim_cfg, layout)


if __name__ == "__main__":
    main()
