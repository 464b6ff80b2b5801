"""PyChrono implementation of the pose oracle and the constraint factory.

Supported joint kinds:

- ``fixed``, ``revolute``, ``prismatic``, ``ball``: ``ChLinkLock*`` joints.
  Revolute and prismatic joints act about / along the z axis of the anchor
  frame (the male mate point frame). They have no stiffness attributes.
- ``spring``: a ``ChLinkTSDA`` with zero rest length pulling the male anchor
  onto the point of the female body it touched when attached. Its
  ``spring_k`` and ``damping_c`` attributes can be ramped.

Joints are only added to the system on their first attach, which happens on
the simulation thread. The scanner thread only builds and initializes links.
"""

from __future__ import annotations

import logging

import pychrono as chrono

from .compat import set_link_disabled
from .models import JointTemplate
from .transforms import Pose

logger = logging.getLogger(__name__)

LOCK_LINKS = {
    "fixed": chrono.ChLinkLockLock,
    "revolute": chrono.ChLinkLockRevolute,
    "prismatic": chrono.ChLinkLockPrismatic,
    "ball": chrono.ChLinkLockSpherical,
}

SPRING_ATTRIBUTES = {
    "spring_k": ("GetSpringCoefficient", "SetSpringCoefficient"),
    "damping_c": ("GetDampingCoefficient", "SetDampingCoefficient"),
    "rest_length": ("GetRestLength", "SetRestLength"),
}


def to_pose(pos, rot) -> Pose:
    """Convert a Chrono vector and quaternion into a `Pose`."""
    return Pose((float(pos.x), float(pos.y), float(pos.z)), (float(rot.e0), float(rot.e1), float(rot.e2), float(rot.e3)))


def to_coordsys(pose: Pose):
    return chrono.ChCoordsysD(chrono.ChVectorD(*pose.position), chrono.ChQuaternionD(*pose.rotation))


class ChronoPoseOracle:
    """Reads world poses straight from Chrono bodies."""

    def world_pose(self, body) -> Pose:
        return to_pose(body.GetPos(), body.GetRot())

    def body_name(self, body) -> str:
        return str(body.GetName())


class ChronoConstraint:
    """A Chrono link between a parent (female) and a child (male) body."""

    def __init__(self, system, link, name: str, kind: str, parent, child, anchor: Pose, parameters: dict):
        self.system = system
        self.link = link
        self.name = name
        self.kind = kind
        self.parent = parent
        self.child = child
        self.anchor = anchor
        self.parameters = parameters
        self._added = False
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def anchor_world(self) -> Pose:
        """Current world pose of the anchor frame on the child body."""
        return to_pose(self.child.GetPos(), self.child.GetRot()) * self.anchor

    def init(self) -> None:
        self._initialize_link()
        if hasattr(self.link, "SetName"):
            self.link.SetName(self.name)
        if self.kind == "spring":
            self.link.SetRestLength(float(self.parameters.get("rest_length", 0.0)))
            self.link.SetSpringCoefficient(float(self.parameters.get("spring_k", 0.0)))
            self.link.SetDampingCoefficient(float(self.parameters.get("damping_c", 0.0)))

    def attach(self) -> None:
        # Lock the bodies in their current relative pose
        self._initialize_link()
        if self.kind == "spring":
            # Initialize() recomputes the rest length from the anchor distance
            self.link.SetRestLength(float(self.parameters.get("rest_length", 0.0)))
        if not self._added:
            self.system.AddLink(self.link)
            self._added = True
        set_link_disabled(self.link, False)
        self._attached = True

    def detach(self) -> None:
        if self._added:
            set_link_disabled(self.link, True)
        self._attached = False

    def get_attribute(self, key: str, default: float = 0.0) -> float:
        if self.kind == "spring" and key in SPRING_ATTRIBUTES:
            return float(getattr(self.link, SPRING_ATTRIBUTES[key][0])())
        return default

    def set_attribute(self, key: str, value: float) -> None:
        if self.kind != "spring" or key not in SPRING_ATTRIBUTES:
            raise KeyError(f"{self.kind} joint {self.name} has no attribute {key!r}")
        getattr(self.link, SPRING_ATTRIBUTES[key][1])(float(value))

    def _initialize_link(self) -> None:
        anchor = self.anchor_world()
        if self.kind == "spring":
            p = chrono.ChVectorD(*anchor.position)
            self.link.Initialize(self.parent, self.child, False, p, p)
        else:
            self.link.Initialize(self.child, self.parent, to_coordsys(anchor))


class ChronoConstraintFactory:
    """Builds `ChronoConstraint` joints inside one Chrono system."""

    def __init__(self, system):
        self.system = system

    def create(self, template: JointTemplate, name: str, parent, child, anchor: Pose) -> ChronoConstraint:
        kind = template.kind.lower()
        if kind in LOCK_LINKS:
            link = LOCK_LINKS[kind]()
            supported = ()
        elif kind == "spring":
            link = chrono.ChLinkTSDA()
            supported = tuple(SPRING_ATTRIBUTES)
        else:
            raise ValueError(f"Unsupported joint kind: {template.kind!r}")

        for key in template.stiffness_attributes:
            if key not in supported:
                raise ValueError(f"{kind} joints have no stiffness attribute {key!r}")

        logger.debug(f"Building {kind} joint {name}")
        return ChronoConstraint(self.system, link, name, kind, parent, child, anchor, dict(template.parameters))
