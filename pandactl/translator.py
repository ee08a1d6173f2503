"""Translate vision-system coordinates into the robot base frame."""

from __future__ import annotations

from dataclasses import dataclass, field

from pandactl.geometry import Point, Pose, Transform, normalize, quat_rotate

MM_TO_M = 1.0 / 1000.0

# Pixel-per-millimetre scale factors; truncated to integers by design.
_U_SCALE = int(640 / 300)
_V_SCALE = int(-480 / 220)

_PARALLEL_EPS = 1e-9


class TranslationError(Exception):
    """Raised when a vision pose cannot be mapped onto the table plane."""


@dataclass
class LinearTranslator:
    """Fixed linear mapping from image millimetres to robot metres.

    Vision y maps to robot X; vision x maps to robot Y, mirrored.
    """

    origin_x_m: float = 0.57
    origin_y_m: float = 0.185
    output_frame: str = "panda_link0"

    def translate(self, pose: Pose) -> Pose:
        """Map a vision pose (mm) into ``output_frame`` (m), z set to 0."""
        x_m = pose.position.x * MM_TO_M
        y_m = pose.position.y * MM_TO_M
        position = Point(self.origin_x_m + y_m, self.origin_y_m - x_m, 0.0)
        return Pose(position, pose.orientation)


@dataclass
class CameraIntrinsics:
    """Pinhole camera parameters in pixels."""

    fx: float = 554.38
    fy: float = 554.38
    cx: float = 320.5
    cy: float = 240.5


@dataclass
class RayTableTranslator:
    """Project an image point through the camera onto the table plane."""

    intrinsics: CameraIntrinsics = field(default_factory=CameraIntrinsics)
    table_z: float = 0.0
    output_frame: str = "panda_link0"
    world_frame: str = "panda_link0"
    camera_frame: str = "camera_color_optical_frame"

    def translate(self, pose: Pose, camera_transform: Transform) -> Pose:
        """Intersect the viewing ray of ``pose`` with the table plane.

        ``camera_transform`` maps camera coordinates into the world frame.
        """
        u = _U_SCALE * pose.position.x
        v = _V_SCALE * pose.position.y
        cam = self.intrinsics
        d_c = normalize(Point((u - cam.cx) / cam.fx, (v - cam.cy) / cam.fy, 1.0))

        origin = camera_transform.translation
        d_w = quat_rotate(camera_transform.rotation, d_c)

        if abs(d_w.z) < _PARALLEL_EPS:
            raise TranslationError(
                "Ray is parallel to table plane, cannot compute intersection."
            )
        t = (self.table_z - origin.z) / d_w.z
        if t <= 0:
            raise TranslationError(
                "Intersection is behind the camera, invalid measurement."
            )
        return Pose(origin + d_w * t, pose.orientation)