"""Small geometry types and helpers for poses, rotations and angles."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator


def deg2rad(deg: float) -> float:
    """Convert degrees to radians."""
    return deg * (math.pi / 180.0)


def rad2deg(rad: float) -> float:
    """Convert radians to degrees."""
    return rad * (180.0 / math.pi)


@dataclass(frozen=True)
class Point:
    """A point or vector in 3D space."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, factor: float) -> Point:
        return Point(self.x * factor, self.y * factor, self.z * factor)

    __rmul__ = __mul__

    def dot(self, other: Point) -> float:
        """Scalar product with another vector."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Point) -> Point:
        """Vector product with another vector."""
        return Point(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        """Euclidean length of the vector."""
        return math.sqrt(self.dot(self))


@dataclass(frozen=True)
class Quaternion:
    """A rotation quaternion; the default is the identity."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0


@dataclass(frozen=True)
class Pose:
    """A position together with an orientation."""

    position: Point = field(default_factory=Point)
    orientation: Quaternion = field(default_factory=Quaternion)


@dataclass(frozen=True)
class Transform:
    """A rigid transform: rotation followed by translation."""

    translation: Point = field(default_factory=Point)
    rotation: Quaternion = field(default_factory=Quaternion)


def normalize(v: Point) -> Point:
    """Return ``v`` scaled to unit length."""
    length = v.length()
    if length == 0.0:
        raise ValueError("cannot normalize a zero-length vector")
    return v * (1.0 / length)


def quat_rotate(q: Quaternion, v: Point) -> Point:
    """Rotate vector ``v`` by quaternion ``q`` (computes q * v * conj(q))."""
    u = Point(q.x, q.y, q.z)
    s = q.w
    return u * (2.0 * u.dot(v)) + v * (s * s - u.dot(u)) + u.cross(v) * (2.0 * s)


def yaw_deg_from_quaternion(q: Quaternion) -> float:
    """Yaw about Z in degrees, taken from the z and w components only."""
    return rad2deg(math.atan2(q.z, q.w) * 2.0)