"""Runtime atoms and mate points bound to simulated rigid bodies."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .backend import PoseOracle
from .models import AtomModel, Gender, MateModel, MatePointModel
from .transforms import Pose, world_pose

logger = logging.getLogger(__name__)


@dataclass(eq=False, slots=True)
class Atom:
    """One rigid body of the assembly with the model matched to its name."""

    name: str
    body: Any
    model: AtomModel
    oracle: PoseOracle
    index: int = 0
    female_mate_points: list[MatePoint] = field(default_factory=list)
    male_mate_points: list[MatePoint] = field(default_factory=list)

    def world_pose(self) -> Pose:
        return self.oracle.world_pose(self.body)

    @property
    def frame_name(self) -> str:
        """Name of the atom's link frame, e.g. `"peg_1/peg"`."""
        return f"{self.name}/{self.model.type}"

    @property
    def mate_points(self) -> list[MatePoint]:
        return self.female_mate_points + self.male_mate_points


@dataclass(eq=False, slots=True)
class MatePoint:
    """A mate point model instantiated on one atom."""

    atom: Atom
    model: MatePointModel

    @property
    def id(self) -> int:
        return self.model.id

    @property
    def gender(self) -> Gender:
        return self.model.gender

    @property
    def pose(self) -> Pose:
        """Resolved pose in the atom frame, symmetry rotation included."""
        return self.model.pose

    @property
    def mate_model(self) -> MateModel:
        return self.model.model

    @property
    def name(self) -> str:
        return f"{self.atom.name}/{self.gender.value}_{self.id}"

    def world_pose(self, atom_world: Pose | None = None) -> Pose:
        if atom_world is None:
            atom_world = self.atom.world_pose()
        return world_pose(atom_world, self.pose)

    def __repr__(self) -> str:
        return f"MatePoint({self.name})"


def match_atom_model(name: str, atom_models: Mapping[str, AtomModel]) -> AtomModel | None:
    """Return the atom model whose type is the longest prefix of `name`."""
    best = None
    for type_name, model in atom_models.items():
        if name.startswith(type_name) and (best is None or len(type_name) > len(best.type)):
            best = model
    return best


def build_atoms(bodies: Iterable[Any], atom_models: Mapping[str, AtomModel], oracle: PoseOracle) -> list[Atom]:
    """Create atoms for every body whose name matches a known atom model.

    Bodies without a matching model are not part of the assembly and are
    skipped.
    """
    atoms: list[Atom] = []
    for body in bodies:
        name = oracle.body_name(body)
        model = match_atom_model(name, atom_models)
        if model is None:
            logger.debug(f"Skipping body {name!r}: no atom model")
            continue

        atom = Atom(name=name, body=body, model=model, oracle=oracle, index=len(atoms))
        atom.female_mate_points = [MatePoint(atom, mp) for mp in model.female_mate_points]
        atom.male_mate_points = [MatePoint(atom, mp) for mp in model.male_mate_points]
        atoms.append(atom)
        logger.info(
            f"Atom {name} ({model.type}): {len(atom.female_mate_points)} female, "
            f"{len(atom.male_mate_points)} male mate points"
        )
    return atoms
