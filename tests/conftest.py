"""
Shared fixtures: in-memory stand-ins for the host simulation.

The engine only talks to a pose oracle and a constraint factory, so the core
can be exercised without PyChrono.
"""
import copy

import pytest

from chrono_assembly.description import load_description
from chrono_assembly.engine import AssemblyEngine
from chrono_assembly.transforms import Pose


class FakeBody:
    def __init__(self, name, position=(0.0, 0.0, 0.0), rotation=(1.0, 0.0, 0.0, 0.0)):
        self.name = name
        self.pose = Pose(tuple(position), tuple(rotation))

    def move_to(self, position, rotation=(1.0, 0.0, 0.0, 0.0)):
        self.pose = Pose(tuple(position), tuple(rotation))


class FakeOracle:
    def world_pose(self, body):
        return body.pose

    def body_name(self, body):
        return body.name


class FakeConstraint:
    def __init__(self, name, template, parent, child, anchor):
        self.name = name
        self.template = template
        self.parent = parent
        self.child = child
        self.anchor = anchor
        self.attributes = {
            k: float(v) for k, v in template.parameters.items() if isinstance(v, (int, float))
        }
        self.events = []
        self._attached = False

    @property
    def attached(self):
        return self._attached

    def init(self):
        self.events.append("init")
        self._attached = True

    def attach(self):
        self.events.append("attach")
        self._attached = True

    def detach(self):
        self.events.append("detach")
        self._attached = False

    def get_attribute(self, key, default=0.0):
        return self.attributes.get(key, default)

    def set_attribute(self, key, value):
        self.attributes[key] = value


class FakeFactory:
    def __init__(self):
        self.created = []
        self.attempts = 0
        self.missing_setter_for = set()

    def create(self, template, name, parent, child, anchor):
        self.attempts += 1
        if template.kind == "broken":
            raise ValueError(f"Unsupported joint kind: {template.kind!r}")
        if child.name in self.missing_setter_for:
            raise AttributeError("No link enable/disable setter in this PyChrono build")
        constraint = FakeConstraint(name, template, parent, child, anchor)
        self.created.append(constraint)
        return constraint


PEG_DESCRIPTION = {
    "updates_per_second": 100,
    "autostart_scanner": False,
    "mate_models": [
        {
            "model": "proximity",
            "type": "peg",
            "joint": {"type": "fixed", "stiffness": ["erp"], "erp": 0.8},
            "symmetry": {"rot": [1, 1, 4]},
            "ramp": {"duration": 0.1, "shape": "linear"},
            "max_trans_err": 0.01,
            "max_rot_err": 0.1,
            "sep_trans_err": 0.05,
            "sep_rot_err": 0.5,
        }
    ],
    "atom_models": [
        {"type": "socket", "mate_points": [{"type": "peg", "gender": "female", "pose": [0, 0, 0.05]}]},
        {"type": "peg", "mate_points": [{"type": "peg", "gender": "male", "pose": [0, 0, -0.05]}]},
    ],
}


@pytest.fixture
def peg_description():
    """A fresh copy of the peg/socket description mapping."""
    return copy.deepcopy(PEG_DESCRIPTION)


@pytest.fixture
def factory():
    return FakeFactory()


@pytest.fixture
def make_engine(factory):
    """Build an engine over fake bodies: `make_engine(bodies, description=None)`."""

    def _make(bodies, description=None):
        loaded = load_description(description or copy.deepcopy(PEG_DESCRIPTION))
        return AssemblyEngine.from_description(loaded, bodies, FakeOracle(), factory)

    return _make


@pytest.fixture
def seated_pair():
    """A socket at the origin and a peg seated on it."""
    return [FakeBody("socket_0"), FakeBody("peg_0", (0.0, 0.0, 0.1))]
