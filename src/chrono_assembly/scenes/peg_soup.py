"""Scene composition for a row of pegs dropped onto sockets.

This module owns assembly of the demo scenario:
- create and configure a Chrono system,
- add a floor body and fixed socket atoms,
- add peg atoms hovering above the sockets,
- wire a mate engine to the system through the PyChrono backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import pychrono as chrono

from ..chrono_backend import ChronoConstraintFactory, ChronoPoseOracle
from ..compat import (
    prefer_bullet,
    set_gravity,
    set_single_thread,
    sim_time,
    system_bodies,
    tune_collision_defaults,
)
from ..config import SimulationConfig
from ..description import load_description
from ..engine import AssemblyEngine
from ..geometry import add_atom_box, add_floor_box, make_contact_material

# Socket tops carry a female point with 4-fold symmetry about the vertical
# axis; peg bottoms carry the matching male point.
DEFAULT_DESCRIPTION: dict[str, Any] = {
    "publish_active_mates": True,
    "updates_per_second": 20,
    "mate_models": [
        {
            "model": "proximity",
            "type": "peg",
            "joint": {
                "type": "spring",
                "stiffness": ["spring_k", "damping_c"],
                "spring_k": 2000.0,
                "damping_c": 20.0,
            },
            "symmetry": {"rot": [1, 4, 1]},
            "ramp": {"duration": 0.05, "shape": "linear"},
            "max_trans_err": 0.01,
            "max_rot_err": 0.2,
            "sep_trans_err": 0.05,
            "sep_rot_err": 0.6,
        }
    ],
    "atom_models": [
        {"type": "socket", "mate_points": [{"type": "peg", "gender": "female", "pose": [0.0, 0.05, 0.0]}]},
        {"type": "peg", "mate_points": [{"type": "peg", "gender": "male", "pose": [0.0, -0.03, 0.0]}]},
    ],
}


@dataclass(slots=True)
class PegSoupLayout:
    """Placement of sockets and pegs along the x axis.

    The default half sizes match the mate point poses of `DEFAULT_DESCRIPTION`.
    """

    count: int = 3
    spacing: float = 0.3
    drop_height: float = 0.02
    socket_half_size: tuple[float, float, float] = (0.05, 0.05, 0.05)
    peg_half_size: tuple[float, float, float] = (0.03, 0.03, 0.03)
    density: float = 500.0


@dataclass(slots=True)
class SceneHandles:
    """References to the core objects needed to simulate and record a scene."""

    system: chrono.ChSystem
    engine: AssemblyEngine
    floor_body: object
    sockets: list = field(default_factory=list)
    pegs: list = field(default_factory=list)


def build_peg_soup_scene(
    sim_cfg: SimulationConfig,
    layout: Optional[PegSoupLayout] = None,
    description: Optional[Mapping[str, Any]] = None,
) -> SceneHandles:
    """Build fixed sockets on a floor with one free peg above each socket."""
    layout = layout or PegSoupLayout()
    if layout.count <= 0:
        raise ValueError("layout.count must be > 0")

    system = chrono.ChSystemNSC() if sim_cfg.contact_model == "NSC" else chrono.ChSystemSMC()
    prefer_bullet(system)
    tune_collision_defaults(
        envelope=sim_cfg.solver.collision_envelope,
        margin=sim_cfg.solver.collision_margin,
    )
    if sim_cfg.solver.single_thread:
        set_single_thread(system)
    set_gravity(system, chrono.ChVectorD(*sim_cfg.gravity))

    material = make_contact_material(sim_cfg.contact_model)
    floor = add_floor_box(system, (1.0, 0.05, 1.0), (0.0, -0.05, 0.0), material)

    socket_hy = layout.socket_half_size[1]
    peg_hy = layout.peg_half_size[1]
    x0 = -0.5 * layout.spacing * (layout.count - 1)

    sockets, pegs = [], []
    for i in range(layout.count):
        x = x0 + i * layout.spacing
        sockets.append(
            add_atom_box(
                system,
                f"socket_{i}",
                layout.socket_half_size,
                (x, socket_hy, 0.0),
                layout.density,
                material,
                fixed=True,
                color=(0.3, 0.3, 0.8),
            )
        )
        pegs.append(
            add_atom_box(
                system,
                f"peg_{i}",
                layout.peg_half_size,
                (x, 2.0 * socket_hy + peg_hy + layout.drop_height, 0.0),
                layout.density,
                material,
                color=(0.8, 0.3, 0.3),
            )
        )

    engine = AssemblyEngine.from_description(
        load_description(description or DEFAULT_DESCRIPTION),
        system_bodies(system),
        ChronoPoseOracle(),
        ChronoConstraintFactory(system),
        clock=lambda: sim_time(system),
    )
    return SceneHandles(system=system, engine=engine, floor_body=floor, sockets=sockets, pegs=pegs)
