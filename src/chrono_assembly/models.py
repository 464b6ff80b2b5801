"""Static assembly models: mate models, atom models and their mate points.

A mate model is the rule set shared by every mate point of one connection
kind. It decides from geometry when a pair should mate or unmate
(`evaluate`), applies scheduled requests (`commit`) and drives the stiffness
ramp of the joint between ticks (`advance`).

Lifecycle of a mate::

    UNMATED -> MATING -> MATED -> UNMATING -> UNMATED

`evaluate` may only request `MATING` from `UNMATED` and `UNMATING` from
`MATED`. Only `advance` moves a mate out of the two ramp states.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .config import DipoleParameters, ProximityThresholds, RampConfig
from .errors import ConfigurationError
from .transforms import Pose, distance, dot, pose_error, quat_multiply, rot_x, rot_y, rot_z

if TYPE_CHECKING:
    from .mate import Mate

logger = logging.getLogger(__name__)


class MateState(enum.Enum):
    """Lifecycle state of a mate. `NONE` is only used for pending requests."""

    NONE = "none"
    UNMATED = "unmated"
    MATING = "mating"
    MATED = "mated"
    UNMATING = "unmating"


class Transition(enum.Enum):
    """Outcome of evaluating a mate against the current geometry."""

    NONE = "none"
    MATE = "mate"
    UNMATE = "unmate"

    @property
    def target(self) -> MateState:
        return _TRANSITION_TARGETS[self]


_TRANSITION_TARGETS = {
    Transition.NONE: MateState.NONE,
    Transition.MATE: MateState.MATING,
    Transition.UNMATE: MateState.UNMATING,
}


class Gender(enum.Enum):
    FEMALE = "female"
    MALE = "male"

    @classmethod
    def parse(cls, value: str) -> "Gender":
        """Resolve a gender name case-insensitively."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(f"Unknown gender: {value!r}") from None


@dataclass(slots=True)
class JointTemplate:
    """Parameters used to build the physical joint of a mate.

    Attributes:
        kind: Joint kind understood by the constraint factory (e.g. `"fixed"`).
        parameters: Kind-specific values (axis, spring coefficients, ...).
        stiffness_attributes: Constraint attributes captured at creation time
            and ramped from zero while mating.
    """

    kind: str
    parameters: dict[str, Any] = field(default_factory=dict)
    stiffness_attributes: tuple[str, ...] = ()


def build_symmetries(rot_counts: tuple[int, int, int] | None) -> list[Pose]:
    """Expand rotational symmetry counts about x, y and z into rotation frames.

    The result is the Cartesian product `Rx(i) * Ry(j) * Rz(k)` with steps of
    `2*pi / count` on each axis. No counts yields the identity only.
    """
    if rot_counts is None:
        return [Pose.identity()]

    counts = [int(c) for c in rot_counts]
    if len(counts) != 3:
        raise ValueError("Rotational symmetry needs one count per axis")
    if any(c < 1 for c in counts):
        raise ValueError(f"Symmetry counts must be >= 1, got {tuple(counts)}")

    nx, ny, nz = counts
    symmetries = []
    for ix in range(nx):
        qx = rot_x(ix * 2.0 * math.pi / nx)
        for iy in range(ny):
            qy = rot_y(iy * 2.0 * math.pi / ny)
            for iz in range(nz):
                qz = rot_z(iz * 2.0 * math.pi / nz)
                symmetries.append(Pose(rotation=quat_multiply(quat_multiply(qx, qy), qz)))
    return symmetries


@dataclass(eq=False, slots=True)
class MateModel:
    """Base class of the mate model variants.

    Instances are compared by identity: two mate points can only mate when
    they reference the same model object.
    """

    type: str
    joint_template: JointTemplate
    symmetries: list[Pose] = field(default_factory=lambda: [Pose.identity()])
    ramp: RampConfig = field(default_factory=RampConfig)

    kind = "abstract"

    def evaluate(self, mate: Mate, female_world: Pose, male_world: Pose) -> Transition:
        """Return the transition requested by the current geometry.

        Must not mutate `mate`.
        """
        raise NotImplementedError

    def commit(self, mate: Mate, requested_state: MateState) -> bool:
        """Apply a scheduled request; return whether the state changed."""
        current = mate.committed_state
        if requested_state is MateState.MATING and current is MateState.UNMATED:
            mate.anchor_offset = mate.male.world_pose().inverse() * mate.female.world_pose()
            mate.ramp_progress = 0.0
            self._apply_stiffness(mate)
            mate.constraint.attach()
        elif requested_state is MateState.UNMATING and current is MateState.MATED:
            mate.ramp_progress = 1.0
        else:
            logger.warning(
                f"Ignoring {requested_state.value} request for {mate.name} in state {current.value}"
            )
            return False

        mate.committed_state = requested_state
        logger.info(f"{mate.name}: {current.value} -> {requested_state.value}")
        return True

    def advance(self, mate: Mate, dt: float) -> None:
        """Progress the stiffness ramp of a mate by `dt` simulated seconds."""
        state = mate.committed_state
        if state is MateState.MATING:
            mate.ramp_progress = self._step_ramp(mate.ramp_progress, dt, 1.0)
            self._apply_stiffness(mate)
            if mate.ramp_progress >= 1.0:
                mate.committed_state = MateState.MATED
                logger.debug(f"{mate.name}: mating ramp complete")
        elif state is MateState.UNMATING:
            mate.ramp_progress = self._step_ramp(mate.ramp_progress, dt, -1.0)
            self._apply_stiffness(mate)
            if mate.ramp_progress <= 0.0:
                mate.constraint.detach()
                mate.anchor_offset = Pose.identity()
                mate.committed_state = MateState.UNMATED
                logger.debug(f"{mate.name}: unmating ramp complete, joint detached")

    def stiffness_scale(self, progress: float) -> float:
        """Map ramp progress in `[0, 1]` to a fraction of the baseline stiffness."""
        progress = min(1.0, max(0.0, progress))
        if self.ramp.shape == "exponential":
            k = self.ramp.sharpness
            return (1.0 - math.exp(-k * progress)) / (1.0 - math.exp(-k))
        return progress

    def _step_ramp(self, progress: float, dt: float, direction: float) -> float:
        if self.ramp.duration <= 0.0:
            return 1.0 if direction > 0 else 0.0
        return min(1.0, max(0.0, progress + direction * dt / self.ramp.duration))

    def _apply_stiffness(self, mate: Mate) -> None:
        scale = self.stiffness_scale(mate.ramp_progress)
        for key, baseline in mate.baseline_stiffness.items():
            mate.constraint.set_attribute(key, baseline * scale)


@dataclass(eq=False, slots=True)
class ProximityMateModel(MateModel):
    """Mates a pair when their frames coincide within pose tolerances."""

    thresholds: ProximityThresholds = field(default_factory=ProximityThresholds)

    kind = "proximity"

    def evaluate(self, mate: Mate, female_world: Pose, male_world: Pose) -> Transition:
        trans_err, rot_err = pose_error(female_world, male_world * mate.anchor_offset)
        t = self.thresholds
        state = mate.committed_state

        if state is MateState.UNMATED:
            if trans_err < t.max_trans_err and rot_err < t.max_rot_err:
                return Transition.MATE
        elif state is MateState.MATED:
            if trans_err > t.sep_trans_err or rot_err > t.sep_rot_err:
                return Transition.UNMATE
        return Transition.NONE


@dataclass(eq=False, slots=True)
class DipoleMateModel(MateModel):
    """Mates a pair when a magnet-like attraction score crosses a threshold.

    The score grows with the alignment of the two z axes and decays with the
    distance between the frames. Separate engage and release thresholds keep a
    pair from flickering at the boundary.
    """

    field_params: DipoleParameters = field(default_factory=DipoleParameters)

    kind = "dipole"

    def score(self, female_world: Pose, male_world: Pose) -> float:
        p = self.field_params
        alignment = max(0.0, dot(female_world.axis(2), male_world.axis(2)))
        d = distance(female_world.position, male_world.position)
        return alignment ** p.alignment_exponent / (1.0 + (d / p.range) ** p.falloff)

    def evaluate(self, mate: Mate, female_world: Pose, male_world: Pose) -> Transition:
        s = self.score(female_world, male_world)
        state = mate.committed_state

        if state is MateState.UNMATED and s >= self.field_params.engage_threshold:
            return Transition.MATE
        if state is MateState.MATED and s < self.field_params.release_threshold:
            return Transition.UNMATE
        return Transition.NONE


MATE_MODEL_KINDS: dict[str, type[MateModel]] = {
    ProximityMateModel.kind: ProximityMateModel,
    DipoleMateModel.kind: DipoleMateModel,
}


@dataclass(eq=False, slots=True)
class MatePointModel:
    """A site on an atom model where mating can occur."""

    id: int
    gender: Gender
    pose: Pose
    model: MateModel


@dataclass(eq=False, slots=True)
class AtomModel:
    """Template of one part type and its mate points."""

    type: str
    female_mate_points: list[MatePointModel] = field(default_factory=list)
    male_mate_points: list[MatePointModel] = field(default_factory=list)

    def add_mate_point(self, gender: Gender, base_pose: Pose, mate_model: MateModel) -> list[MatePointModel]:
        """Add a mate point; female points get one instance per model symmetry.

        Ids are assigned sequentially across both genders.
        """
        if gender is Gender.FEMALE:
            poses = [base_pose * symmetry for symmetry in mate_model.symmetries]
            target = self.female_mate_points
        else:
            poses = [base_pose]
            target = self.male_mate_points

        created = []
        for pose in poses:
            point = MatePointModel(
                id=len(self.female_mate_points) + len(self.male_mate_points),
                gender=gender,
                pose=pose,
                model=mate_model,
            )
            target.append(point)
            created.append(point)
            logger.debug(f"Added {gender.value} mate point {self.type}#{point.id} ({mate_model.type})")
        return created
