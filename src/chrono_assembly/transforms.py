"""Rigid pose algebra used by the mate engine.

Poses are plain Python tuples so they can cross the scanner thread boundary
and be compared in tests without PyChrono. Quaternions are stored as
`(w, x, y, z)`, matching `chrono.ChQuaternionD`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

Vector = tuple[float, float, float]
Quaternion = tuple[float, float, float, float]

QUNIT: Quaternion = (1.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True, slots=True)
class Pose:
    """A rigid frame: translation followed by rotation."""

    position: Vector = (0.0, 0.0, 0.0)
    rotation: Quaternion = QUNIT

    @classmethod
    def identity(cls) -> "Pose":
        return cls()

    def __mul__(self, other: "Pose") -> "Pose":
        """Compose frames, `self` being the parent of `other`."""
        if not isinstance(other, Pose):
            return NotImplemented
        p = _add(self.position, quat_rotate(self.rotation, other.position))
        return Pose(p, quat_normalize(quat_multiply(self.rotation, other.rotation)))

    def inverse(self) -> "Pose":
        q_inv = quat_conjugate(self.rotation)
        p = quat_rotate(q_inv, self.position)
        return Pose((-p[0], -p[1], -p[2]), q_inv)

    def transform_point(self, point: Vector) -> Vector:
        """Map a point expressed in this frame into the parent frame."""
        return _add(self.position, quat_rotate(self.rotation, point))

    def axis(self, index: int) -> Vector:
        """Return the rotated unit basis vector `index` (0=x, 1=y, 2=z)."""
        basis = [0.0, 0.0, 0.0]
        basis[index] = 1.0
        return quat_rotate(self.rotation, (basis[0], basis[1], basis[2]))


def quat_multiply(a: Quaternion, b: Quaternion) -> Quaternion:
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return (
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
    )


def quat_conjugate(q: Quaternion) -> Quaternion:
    w, x, y, z = q
    return (w, -x, -y, -z)


def quat_normalize(q: Quaternion) -> Quaternion:
    n = math.sqrt(sum(c * c for c in q))
    if n <= 0.0:
        raise ValueError("Quaternion must be non-zero")
    return (q[0] / n, q[1] / n, q[2] / n, q[3] / n)


def quat_rotate(q: Quaternion, v: Vector) -> Vector:
    w, x, y, z = quat_multiply(quat_multiply(q, (0.0, v[0], v[1], v[2])), quat_conjugate(q))
    return (x, y, z)


def quat_angle(q: Quaternion) -> float:
    """Return the rotation angle of `q` in `[0, pi]`."""
    w = min(1.0, abs(q[0]) / math.sqrt(sum(c * c for c in q)))
    return 2.0 * math.acos(w)


def from_axis_angle(angle: float, axis: Vector) -> Quaternion:
    ax, ay, az = axis
    n = math.sqrt(ax * ax + ay * ay + az * az)
    if n <= 0.0:
        raise ValueError("Rotation axis must be non-zero")
    s = math.sin(0.5 * angle) / n
    return (math.cos(0.5 * angle), ax * s, ay * s, az * s)


def rot_x(angle: float) -> Quaternion:
    return from_axis_angle(angle, (1.0, 0.0, 0.0))


def rot_y(angle: float) -> Quaternion:
    return from_axis_angle(angle, (0.0, 1.0, 0.0))


def rot_z(angle: float) -> Quaternion:
    return from_axis_angle(angle, (0.0, 0.0, 1.0))


def from_rpy(roll: float, pitch: float, yaw: float) -> Quaternion:
    """Fixed-axis roll/pitch/yaw, as used by SDF poses: `Rz(yaw) * Ry(pitch) * Rx(roll)`."""
    return quat_normalize(quat_multiply(quat_multiply(rot_z(yaw), rot_y(pitch)), rot_x(roll)))


def pose_from_xyzrpy(values) -> Pose:
    """Build a pose from `[x, y, z]` or `[x, y, z, roll, pitch, yaw]`."""
    values = [float(v) for v in values]
    if len(values) == 3:
        return Pose((values[0], values[1], values[2]))
    if len(values) == 6:
        return Pose((values[0], values[1], values[2]), from_rpy(*values[3:]))
    raise ValueError(f"Pose needs 3 or 6 values, got {len(values)}")


def pose_error(a: Pose, b: Pose) -> tuple[float, float]:
    """Return the `(translation distance, rotation angle)` between two frames."""
    d = _sub(a.position, b.position)
    dist = math.sqrt(d[0] * d[0] + d[1] * d[1] + d[2] * d[2])
    rel = quat_multiply(quat_conjugate(a.rotation), b.rotation)
    return dist, quat_angle(rel)


def distance(a: Vector, b: Vector) -> float:
    d = _sub(a, b)
    return math.sqrt(d[0] * d[0] + d[1] * d[1] + d[2] * d[2])


def dot(a: Vector, b: Vector) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def world_pose(atom_world: Pose, local: Pose) -> Pose:
    """Resolve an atom-local frame into the world frame."""
    return atom_world * local


def _add(a: Vector, b: Vector) -> Vector:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def _sub(a: Vector, b: Vector) -> Vector:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])
