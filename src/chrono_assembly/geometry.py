"""Rigid-body construction helpers for assembly scenes.

The functions in this module are responsible for:
- creating named Chrono bodies whose names select their atom model,
- attaching visual shapes,
- configuring collision shapes/models,
- adding bodies to a system.
"""

from __future__ import annotations

import pychrono as chrono

from .compat import set_body_fixed


def colorize(vshape, rgb: tuple[float, float, float]) -> None:
    """Apply a diffuse color to a Chrono visual shape."""
    mat = chrono.ChVisualMaterial()
    mat.SetDiffuseColor(chrono.ChColor(*rgb))
    mats = vshape.GetMaterials() if hasattr(vshape, "GetMaterials") else vshape.material_list
    mats.push_back(mat)


def _box_body(half_size, material, color, mass: float):
    hx, hy, hz = half_size

    body = chrono.ChBody()
    body.SetMass(mass)
    body.SetInertiaXX(
        chrono.ChVectorD(
            (1.0 / 3.0) * mass * (hy * hy + hz * hz),
            (1.0 / 3.0) * mass * (hx * hx + hz * hz),
            (1.0 / 3.0) * mass * (hx * hx + hy * hy),
        )
    )

    vis = chrono.ChBoxShape()
    vis.GetBoxGeometry().Size = chrono.ChVectorD(hx, hy, hz)
    colorize(vis, color)
    body.AddVisualShape(vis)

    if material is None:
        body.SetCollide(False)
    else:
        cm = body.GetCollisionModel()
        cm.ClearModel()
        cm.AddBox(material, hx, hy, hz, chrono.ChVectorD(0, 0, 0), chrono.ChMatrix33D(1))
        cm.BuildModel()
        body.SetCollide(True)
    return body


def add_floor_box(
    system,
    half_size: tuple[float, float, float],
    position: tuple[float, float, float],
    material,
    color: tuple[float, float, float] = (0.6, 0.6, 0.6),
):
    """Create and add a fixed floor body named ``"floor"``.

    The floor name matches no atom model, so it never takes part in mating.
    """
    body = _box_body(half_size, material, color, mass=1.0)
    body.SetName("floor")
    set_body_fixed(body, True)
    body.SetPos(chrono.ChVectorD(*position))
    system.Add(body)
    return body


def add_atom_box(
    system,
    name: str,
    half_size: tuple[float, float, float],
    position: tuple[float, float, float],
    density: float,
    material,
    *,
    fixed: bool = False,
    color: tuple[float, float, float] = (0.2, 0.6, 0.9),
):
    """Create and add one box-shaped atom body.

    Args:
        system: The Chrono system receiving the body.
        name: Body name. Its prefix selects the atom model, e.g. ``"peg_3"``.
        half_size: Half-dimensions `(hx, hy, hz)` of the box.
        position: Initial world position of the body center.
        density: Material density used for mass and inertia.
        material: Contact material, or ``None`` for a visual-only body.
        fixed: Whether the body is fixed to the ground.
        color: RGB diffuse color for visualization.

    Returns:
        The created Chrono body.
    """
    hx, hy, hz = half_size
    mass = max(1e-6, density * 8.0 * hx * hy * hz)
    body = _box_body(half_size, material, color, mass=mass)
    body.SetName(name)
    set_body_fixed(body, fixed)
    body.SetPos(chrono.ChVectorD(*position))
    system.Add(body)
    return body


def make_contact_material(model: str, friction: float = 0.5, restitution: float = 0.0, young: float = 2e6):
    """Create a surface material for the contact formulation of a system."""
    if model == "NSC":
        mat = chrono.ChMaterialSurfaceNSC()
    elif model == "SMC":
        mat = chrono.ChMaterialSurfaceSMC()
        if hasattr(mat, "SetYoungModulus"):
            mat.SetYoungModulus(young)
    else:
        raise ValueError(f"Unsupported contact model: {model}")

    mat.SetFriction(friction)
    mat.SetRestitution(restitution)
    return mat
