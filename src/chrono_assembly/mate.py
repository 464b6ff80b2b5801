"""Mates: the stateful pairing of one female and one male mate point."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .atoms import MatePoint
from .backend import Constraint, ConstraintFactory
from .errors import MateConstructionError
from .models import Gender, MateModel, MateState
from .transforms import Pose

logger = logging.getLogger(__name__)


def mate_name(female: MatePoint, male: MatePoint) -> str:
    return f"{female.atom.name}_m{female.id}_to_{male.atom.name}_m{male.id}"


@dataclass(eq=False, slots=True)
class Mate:
    """Runtime state of one (female, male) mate point pair.

    Attributes:
        model: Mate model shared by both mate points.
        female: Female mate point; its atom is the joint parent.
        male: Male mate point; its atom is the joint child.
        constraint: Joint built at creation time, initially detached.
        baseline_stiffness: Stiffness attributes read from the joint at creation.
        committed_state: State currently in effect.
        pending_state: Request waiting for the commit step, `NONE` if there is none.
        anchor_offset: Offset from the male mate frame to the joint anchor.
        ramp_progress: Stiffness ramp position in `[0, 1]`.
    """

    model: MateModel
    female: MatePoint
    male: MatePoint
    constraint: Constraint
    baseline_stiffness: dict[str, float] = field(default_factory=dict)
    committed_state: MateState = MateState.UNMATED
    pending_state: MateState = MateState.NONE
    anchor_offset: Pose = field(default_factory=Pose.identity)
    ramp_progress: float = 0.0

    @property
    def name(self) -> str:
        return self.constraint.name

    @property
    def stiffness(self) -> dict[str, float]:
        """Current values of the ramped joint attributes."""
        return {key: self.constraint.get_attribute(key) for key in self.baseline_stiffness}

    @classmethod
    def create(cls, factory: ConstraintFactory, female: MatePoint, male: MatePoint) -> "Mate":
        """Build the joint for a pair and return a detached mate.

        Raises:
            ValueError: If the points are not a female/male pair of one mate model.
            MateConstructionError: If the factory cannot build or initialize the joint.
        """
        if female.gender is not Gender.FEMALE or male.gender is not Gender.MALE:
            raise ValueError(f"Mate needs a female and a male point, got {female} and {male}")
        if female.mate_model is not male.mate_model:
            raise ValueError(
                f"Incompatible mate models: {female.mate_model.type} and {male.mate_model.type}"
            )

        model = female.mate_model
        name = mate_name(female, male)
        logger.info(f"Creating joint for mate type {model.type}: {female.atom.name} -> {male.atom.name}")

        try:
            constraint = factory.create(model.joint_template, name, female.atom.body, male.atom.body, male.pose)
            constraint.init()
            constraint.detach()
            baseline = {
                key: float(constraint.get_attribute(key))
                for key in model.joint_template.stiffness_attributes
            }
        except Exception as exc:
            raise MateConstructionError(female.name, male.name, str(exc)) from exc

        return cls(model=model, female=female, male=male, constraint=constraint, baseline_stiffness=baseline)
