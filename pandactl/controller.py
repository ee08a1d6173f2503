"""Pick-and-place controller for a 7-joint arm with a two-finger hand."""

from __future__ import annotations

import enum
import logging
import re
import threading
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from pandactl.geometry import (
    Point,
    Pose,
    Quaternion,
    deg2rad,
    rad2deg,
    yaw_deg_from_quaternion,
)
from pandactl.motion import MotionGroup

logger = logging.getLogger(__name__)

PLANNING_PIPELINE = "pilz_industrial_motion_planner"
POSE_REFERENCE_FRAME = "panda_link0"
END_EFFECTOR_LINK = "panda_hand_tcp"
FEEDBACK_MESSAGE = "Süßigkeit dargereicht"
WAITING_FOR_SELECTION = "WAITING_FOR_SELECTION"

STANDARD_GOALPOSE = 1
JACKAL_GOALPOSE = 2

DEFAULT_GRIP_WIDTH_MM = 22.0
WRIST_MAX_DEG = 166.0

ABOVE_PLACE_JOINTS = (
    deg2rad(-90.0), deg2rad(-10.0), 0.0, deg2rad(-135.0), 0.0, deg2rad(125.0), deg2rad(45.0),
)
ABOVE_PLACE_JOINTS_JACKAL = (
    deg2rad(-115.0), deg2rad(-10.0), 0.0, deg2rad(-135.0), 0.0, deg2rad(125.0), deg2rad(45.0),
)
CARRY_JOINTS = (
    deg2rad(-45.0), deg2rad(-10.0), 0.0, deg2rad(-135.0), 0.0, deg2rad(125.0), deg2rad(45.0),
)
START_JOINTS = (
    0.0, deg2rad(-45.0), 0.0, deg2rad(-135.0), 0.0, deg2rad(90.0), deg2rad(45.0),
)
# The table markings and the coordinate translator are calibrated to this pose.
OBSERVER_JOINTS = (
    0.0, deg2rad(-20.0), 0.0, deg2rad(-150.0), 0.0, deg2rad(130.0), deg2rad(45.0),
)

_LEADING_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class MotionMode(enum.Enum):
    """Planner used for Cartesian moves."""

    PTP = "PTP"
    LIN = "LIN"


@dataclass
class PickJob:
    """An object to pick: its position and optional wrist yaw and grip width."""

    pos: Point = field(default_factory=Point)
    tcp_yaw_deg: Optional[float] = None
    width_mm: Optional[float] = None


class PandaController:
    """Drives an arm and a hand group through pick, place and fixed poses."""

    def __init__(
        self,
        arm: MotionGroup,
        hand: MotionGroup,
        publish: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.arm = arm
        self.hand = hand
        self._publish = publish

        self.grasp_z = 0.017
        self.hover_z = 0.265
        self.default_orientation = Quaternion(x=1.0, y=0.0, z=0.0, w=0.0)
        self.mode = MotionMode.PTP
        self.pick_running = False
        self.last_state = ""

        self._goalpose_lock = threading.Lock()
        self._goalpose_id = STANDARD_GOALPOSE
        self._width_lock = threading.Lock()
        self._object_width_mm: Optional[float] = None

        arm.pose_reference_frame = POSE_REFERENCE_FRAME
        arm.end_effector_link = END_EFFECTOR_LINK
        arm.set_planner(PLANNING_PIPELINE, MotionMode.PTP.value)
        arm.planning_time = 20.0
        arm.max_velocity_scaling = 0.05
        arm.max_acceleration_scaling = 0.05
        hand.max_velocity_scaling = 0.1
        hand.max_acceleration_scaling = 0.1

        self.move_to_start_position()

    @property
    def goalpose_id(self) -> int:
        """The selected place target: 1 standard, 2 Jackal."""
        with self._goalpose_lock:
            return self._goalpose_id

    @property
    def object_width_mm(self) -> Optional[float]:
        """The last reported object width, if any."""
        with self._width_lock:
            return self._object_width_mm

    # ---- planner selection and basic moves ----

    def set_ptp(self) -> None:
        """Use point-to-point planning for the arm."""
        self.arm.set_planner(PLANNING_PIPELINE, MotionMode.PTP.value)

    def set_lin(self) -> None:
        """Use straight-line planning for the arm."""
        self.arm.set_planner(PLANNING_PIPELINE, MotionMode.LIN.value)

    def move_arm_to_pose(self, pose: Pose) -> bool:
        """Move the TCP to ``pose``; False if planning or execution fails."""
        self.arm.set_start_state_to_current()
        self.arm.set_pose_target(pose)
        return self.arm.plan_and_execute()

    def _move_arm_to_joints(self, joints) -> bool:
        self.arm.set_start_state_to_current()
        self.arm.set_joint_target(joints)
        return self.arm.plan_and_execute()

    # ---- gripper ----

    def open_gripper(self) -> None:
        """Move the hand to its "open" configuration."""
        self.hand.set_named_target("open")
        self.hand.move()

    def close_gripper(self) -> None:
        """Move the hand to its "close" configuration."""
        self.hand.set_named_target("close")
        self.hand.move()

    def close_gripper_with_width(self, width_mm: float) -> None:
        """Close both fingers symmetrically to leave a gap of ``width_mm``."""
        gap_m = width_mm / 1000.0
        finger = gap_m / 2.0
        self.hand.set_joint_target([finger, finger])
        self.hand.move()
        logger.info(
            "closeGripperWithWidth: width=%.1f mm -> gap=%.2f mm, joint=%.3f",
            width_mm, gap_m * 1000.0, finger,
        )

    def stop_movement(self) -> None:
        """Stop arm and hand immediately."""
        self.arm.stop()
        self.hand.stop()
        logger.info("Stopped")

    # ---- predefined positions ----

    def move_to_observer_position(self) -> bool:
        """Move to the camera observation pose."""
        ok = self._move_arm_to_joints(OBSERVER_JOINTS)
        if not ok:
            logger.warning("Failed moving to observer Position")
        return ok

    def move_to_start_position(self) -> bool:
        """Move to the start pose."""
        ok = self._move_arm_to_joints(START_JOINTS)
        if not ok:
            logger.warning("Failed moving to start Position")
        return ok

    def move_to_place_position(self) -> bool:
        """Go above the selected place target and then straight down onto it."""
        goalpose_id = self.goalpose_id
        self.set_ptp()
        if not self.move_to_above_place_joints(goalpose_id):
            logger.warning("Failed moving to abovePlaceJoints")
            return False
        place_ori = self.arm.current_pose().orientation
        place_pose = replace(self.make_place_pose(goalpose_id, False), orientation=place_ori)
        self.set_lin()
        if not self.move_arm_to_pose(place_pose):
            logger.warning("Failed moving LIN down to place")
            return False
        return True

    def move_to_above_place_joints(self, goalpose_id: int) -> bool:
        """PTP to the fixed joint pose above the place target."""
        self.set_ptp()
        joints = ABOVE_PLACE_JOINTS_JACKAL if goalpose_id == JACKAL_GOALPOSE else ABOVE_PLACE_JOINTS
        return self._move_arm_to_joints(joints)

    def move_to_carry_joints(self) -> bool:
        """PTP to the fixed transport joint pose."""
        self.set_ptp()
        return self._move_arm_to_joints(CARRY_JOINTS)

    def make_place_pose(self, goalpose_id: int, above: bool) -> Pose:
        """Place pose for a target; hover height if ``above`` else grasp height."""
        if goalpose_id == JACKAL_GOALPOSE:
            x, y = -0.3, -0.6
        else:
            x, y = 0.0, -0.6
        z = self.hover_z if above else self.grasp_z
        return Pose(Point(x, y, z), self.default_orientation)

    def set_wrist_angle(self, angle_deg: float) -> bool:
        """Set joint 7; negative angles are shifted by 180, result clamped to 0..166."""
        joints = self.arm.current_joints()
        target_deg = angle_deg
        if target_deg < 0.0:
            target_deg += 180.0
        target_deg = min(max(target_deg, 0.0), WRIST_MAX_DEG)
        joints[6] = deg2rad(target_deg)
        if not self._move_arm_to_joints(joints):
            logger.warning("Failed setting wrist yaw")
            return False
        return True

    # ---- status ----

    def pose_report(self) -> str:
        """Current TCP position and orientation as text."""
        pose = self.arm.current_pose()
        p, o = pose.position, pose.orientation
        return (
            f"Pose: x={p.x:.3f} y={p.y:.3f} z={p.z:.3f}\n"
            f"Ori:  w={o.w:.3f} x={o.x:.3f} y={o.y:.3f} z={o.z:.3f}"
        )

    def joints_report(self) -> str:
        """Current joint angles in degrees, one line per joint."""
        return "\n".join(
            f"Joint {number}: {rad2deg(value):.1f} deg"
            for number, value in enumerate(self.arm.current_joints(), start=1)
        )

    def publish_feedback(self) -> str:
        """Announce that an object has been delivered; returns the message."""
        if self._publish is not None:
            self._publish(FEEDBACK_MESSAGE)
        return FEEDBACK_MESSAGE

    # ---- pick routine ----

    def pick_routine(self, job: PickJob) -> bool:
        """Pick the object of ``job`` and place it; True if every step succeeded."""
        self.pick_running = True
        try:
            return self._run_pick(job)
        finally:
            self.pick_running = False

    def _run_pick(self, job: PickJob) -> bool:
        goalpose_id = self.goalpose_id
        x, y = job.pos.x, job.pos.y
        above_pose = Pose(Point(x, y, self.hover_z), self.default_orientation)
        grasp_pose = Pose(Point(x, y, self.grasp_z), self.default_orientation)
        above_place_pose = self.make_place_pose(goalpose_id, True)
        place_pose = self.make_place_pose(goalpose_id, False)

        self.set_ptp()
        if not self.move_arm_to_pose(above_pose):
            logger.warning("[auto_pick] Failed PTP above target")
            return False

        if job.tcp_yaw_deg is not None:
            logger.info("[auto_pick] Applying TCP yaw to %.1f deg", job.tcp_yaw_deg)
            if not self.set_wrist_angle(job.tcp_yaw_deg):
                logger.warning("[auto_pick] Failed to apply TCP yaw")

        self.open_gripper()

        orientation = self.arm.current_pose().orientation
        above_pose = replace(above_pose, orientation=orientation)
        grasp_pose = replace(grasp_pose, orientation=orientation)

        self.set_lin()
        if not self.move_arm_to_pose(grasp_pose):
            logger.warning("[auto_pick] Failed LIN down to grasp")
            return False

        if job.width_mm is not None:
            self.close_gripper_with_width(job.width_mm)
        else:
            self.close_gripper_with_width(DEFAULT_GRIP_WIDTH_MM)
            logger.warning("Closing gripper with default width %.1f mm", DEFAULT_GRIP_WIDTH_MM)

        if not self.move_arm_to_pose(above_pose):
            logger.warning("[auto_pick] Failed LIN up to above")
            return False

        self.set_ptp()
        if not self.move_to_carry_joints():
            logger.warning("[auto_pick] Failed PTP to carryJoints")
            return False
        if not self.move_to_above_place_joints(goalpose_id):
            logger.warning("[auto_pick] Failed PTP to abovePlaceJoints")
            return False

        place_ori = self.arm.current_pose().orientation
        above_place_pose = replace(above_place_pose, orientation=place_ori)
        place_pose = replace(place_pose, orientation=place_ori)

        self.set_lin()
        if not self.move_arm_to_pose(place_pose):
            logger.warning("[auto_pick] Failed LIN down to place")
            return False

        self.open_gripper()

        if not self.move_arm_to_pose(above_place_pose):
            logger.warning("[auto_pick] Failed LIN up from place")
            return False

        self.move_to_above_place_joints(goalpose_id)
        self.move_to_carry_joints()
        self.move_to_observer_position()
        self.publish_feedback()
        return True

    # ---- vision-system inputs ----

    def on_sweet_pose(self, pose: Pose) -> bool:
        """Pick at a translated vision pose; False if ignored or the pick failed."""
        if self.pick_running:
            logger.warning("Ignoring sweet pose: pick routine already running")
            return False
        job = PickJob(
            pos=Point(pose.position.x, pose.position.y, self.grasp_z),
            tcp_yaw_deg=yaw_deg_from_quaternion(pose.orientation),
            width_mm=self.object_width_mm,
        )
        logger.info("Calculated TCP yaw: %.1f deg", job.tcp_yaw_deg)
        return self.pick_routine(job)

    def on_robot_status(self, data: str) -> float:
        """Store the object width (mm) leading ``data``; returns it."""
        match = _LEADING_FLOAT.match(data)
        if match is None:
            raise ValueError(f"cannot read a width from '{data}'")
        width_mm = float(match.group(1))
        with self._width_lock:
            self._object_width_mm = width_mm
        logger.info("Width updated to %.1f mm", width_mm)
        return width_mm

    def on_goalpose(self, goalpose_id: int) -> None:
        """Select the place target: 1 standard, 2 Jackal."""
        if goalpose_id not in (STANDARD_GOALPOSE, JACKAL_GOALPOSE):
            raise ValueError(f"invalid goalpose id {goalpose_id} (expected 1 or 2)")
        with self._goalpose_lock:
            self._goalpose_id = goalpose_id
        logger.info("goalpose_id updated to %d", goalpose_id)

    def on_state(self, state: str) -> bool:
        """Track the system state; on entering selection, go to observer pose.

        Returns True if an observer move was made.
        """
        moved = False
        if state == WAITING_FOR_SELECTION and self.last_state != WAITING_FOR_SELECTION:
            if self.pick_running:
                logger.warning("WAITING_FOR_SELECTION received but pick is running")
            else:
                moved = self.move_to_observer_position()
        self.last_state = state
        return moved