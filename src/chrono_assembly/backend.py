"""Interfaces of the host simulation consumed by the mate engine.

The engine never talks to a physics library directly. A host supplies a pose
oracle and a constraint factory; `chrono_backend` implements both on top of
PyChrono, and the tests implement them in memory.
"""

from __future__ import annotations

from typing import Any, Protocol

from .transforms import Pose


class PoseOracle(Protocol):
    """Supplies the current world pose of a rigid body."""

    def world_pose(self, body: Any) -> Pose:
        ...

    def body_name(self, body: Any) -> str:
        ...


class Constraint(Protocol):
    """A two-body positional constraint that can be switched on and off."""

    name: str

    @property
    def attached(self) -> bool:
        ...

    def init(self) -> None:
        ...

    def attach(self) -> None:
        ...

    def detach(self) -> None:
        ...

    def get_attribute(self, key: str, default: float = 0.0) -> float:
        ...

    def set_attribute(self, key: str, value: float) -> None:
        ...


class ConstraintFactory(Protocol):
    """Builds constraints from a mate model's joint template."""

    def create(self, template: Any, name: str, parent: Any, child: Any, anchor: Pose) -> Constraint:
        """Create a detached-able constraint.

        Args:
            template: The `JointTemplate` of the mate model.
            name: Unique joint name.
            parent: Body of the female atom.
            child: Body of the male atom.
            anchor: Joint anchor in the child body frame.

        Raises:
            ValueError: If the template kind is unsupported or malformed.
        """
        ...
