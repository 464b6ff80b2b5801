"""Frame and marker introspection for visualization collaborators.

These helpers turn the engine state into plain frame records that a host can
broadcast (as TF transforms, markers, or anything else). Nothing here is
required by the scanner or the commit step.
"""

from __future__ import annotations

from dataclasses import dataclass

from .engine import AssemblyEngine
from .models import Gender, MateState
from .transforms import Pose

MARKER_SCALE = (0.02, 0.02, 0.01)
MARKER_COLORS = {
    Gender.FEMALE: (0.0, 0.0, 1.0, 0.25),
    Gender.MALE: (1.0, 0.0, 0.0, 0.25),
}


@dataclass(frozen=True, slots=True)
class Frame:
    """A named pose expressed relative to a parent frame."""

    name: str
    parent: str
    pose: Pose


@dataclass(frozen=True, slots=True)
class MatePointFrame:
    """Resolved poses of one mate point and the marker used to draw it."""

    name: str
    parent: str
    gender: Gender
    local_pose: Pose
    world_pose: Pose
    marker_id: int
    color: tuple[float, float, float, float]


def atom_frames(engine: AssemblyEngine) -> list[Frame]:
    """World frame of every atom link, named `"<atom>/<atom type>"`."""
    world = engine.config.tf_world_frame
    return [Frame(atom.frame_name, world, atom.world_pose()) for atom in engine.atoms]


def mate_point_frames(engine: AssemblyEngine) -> list[MatePointFrame]:
    """Every mate point of every atom, parented at its atom link frame.

    Marker ids are `atom_index * 100 + mate point id`.
    """
    frames = []
    for atom in engine.atoms:
        atom_world = atom.world_pose()
        for point in atom.mate_points:
            frames.append(
                MatePointFrame(
                    name=point.name,
                    parent=atom.frame_name,
                    gender=point.gender,
                    local_pose=point.pose,
                    world_pose=point.world_pose(atom_world),
                    marker_id=atom.index * 100 + point.id,
                    color=MARKER_COLORS[point.gender],
                )
            )
    return frames


def joint_frames(engine: AssemblyEngine) -> list[Frame]:
    """World frames of the joints of mates that are currently attached."""
    world = engine.config.tf_world_frame
    frames = []
    for mate in engine.mates:
        if mate.committed_state is MateState.UNMATED:
            continue
        frames.append(Frame(mate.name, world, mate.male.world_pose() * mate.anchor_offset))
    return frames
