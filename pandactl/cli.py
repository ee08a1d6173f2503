"""Interactive command shell for the pick-and-place controller."""

from __future__ import annotations

import argparse
import logging
import math
import sys
from typing import Callable, Dict, List, Optional

from pandactl.controller import MotionMode, PandaController, PickJob
from pandactl.geometry import Point, Pose, Quaternion, deg2rad
from pandactl.motion import SimulatedGroup

logger = logging.getLogger(__name__)

ARM_JOINT_COUNT = 7
HAND_OPEN_FINGER_M = 0.04

_HELP_TEXT = """

============================= Panda CLI Controller Help =======================

  [General]
    help                        - Show this help
    quit                        - Shutdown node
    stop                        - Stop any current motion

  [Move]
    mode ptp|lin                - Select planner mode for move_to
    move_to x y z               - Move end-effector to (x, y, z) [m]
    set_joints j1 ... j7        - Set all 7 joints [deg]
    pick x y [angle_deg]        - Pick object at (x, y), optional yaw

  [TCP / Gripper]
    open                        - Open the panda hand
    close                       - Close the panda hand
    close_w width_mm            - Close the panda hand to specified width [mm]
    turn_hand angle             - Rotate wrist joint [deg]
    set_orientation qw qx qy qz - Set default end-effector orientation (quaternion)

  [Status]
    print_pose                  - Print current end-effector pose
    print_joints                - Print current joint angles [deg]

  [Predefined Poses]
    startPos                    - Move to predefined start pose
    observerPos                 - Move to predefined observer pose
    placePos                    - Move to predefined placement pose

===============================================================================

"""


class CommandError(ValueError):
    """Raised for malformed, unknown or currently refused commands."""


def help_text() -> str:
    """The command overview shown by ``help``."""
    return _HELP_TEXT


def _parse_number(token: str) -> Optional[float]:
    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _floats(args: List[str], count: int, usage: str) -> List[float]:
    """Read the first ``count`` arguments as numbers; extra words are ignored."""
    if len(args) < count:
        raise CommandError(f"INPUT_ERROR: {usage}")
    values = [_parse_number(token) for token in args[:count]]
    if any(value is None for value in values):
        raise CommandError(f"INPUT_ERROR: {usage}")
    return values  # type: ignore[return-value]


class CommandShell:
    """Parses command lines and runs them on a controller."""

    def __init__(self, controller: PandaController) -> None:
        self.controller = controller
        self.running = True
        self._commands: Dict[str, Callable[[List[str]], Optional[str]]] = {
            "help": lambda args: help_text(),
            "mode": self._mode,
            "move_to": self._move_to,
            "set_orientation": self._set_orientation,
            "turn_hand": self._turn_hand,
            "set_joints": self._set_joints,
            "print_pose": lambda args: self.controller.pose_report(),
            "print_joints": lambda args: self.controller.joints_report(),
            "open": self._open,
            "close": self._close,
            "close_w": self._close_w,
            "observerPos": self._observer,
            "placePos": self._place,
            "startPos": self._start,
            "pick": self._pick,
            "quit": self._quit,
        }

    def handle(self, line: str) -> Optional[str]:
        """Run one command line; returns text to show, if any.

        Raises CommandError for bad input, unknown commands, and any command
        other than ``stop`` while a pick routine is running.
        """
        words = line.split()
        cmd, args = (words[0], words[1:]) if words else ("", [])

        if cmd == "stop":
            self.controller.stop_movement()
            return "Stopped"
        if self.controller.pick_running:
            raise CommandError("Command ignored: pick routine already running")
        if not cmd:
            return None
        try:
            command = self._commands[cmd]
        except KeyError:
            raise CommandError(f"Unknown cmd '{cmd}'. Type 'help'") from None
        return command(args)

    # ---- command handlers ----

    def _mode(self, args: List[str]) -> str:
        modes = {"ptp": MotionMode.PTP, "lin": MotionMode.LIN}
        if not args or args[0] not in modes:
            raise CommandError("INPUT_ERROR: mode ptp|lin")
        self.controller.mode = modes[args[0]]
        message = f"Motion mode set to {self.controller.mode.value}"
        logger.info(message)
        return message

    def _move_to(self, args: List[str]) -> Optional[str]:
        x, y, z = _floats(args, 3, "move_to x y z")
        if self.controller.mode is MotionMode.PTP:
            self.controller.set_ptp()
        else:
            self.controller.set_lin()
        orientation = self.controller.arm.current_pose().orientation
        if not self.controller.move_arm_to_pose(Pose(Point(x, y, z), orientation)):
            return self._planning_failed()
        return None

    def _set_orientation(self, args: List[str]) -> str:
        qw, qx, qy, qz = _floats(args, 4, "set_orientation qw qx qy qz")
        self.controller.default_orientation = Quaternion(x=qx, y=qy, z=qz, w=qw)
        return "Default orientation set."

    def _turn_hand(self, args: List[str]) -> None:
        (angle_deg,) = _floats(args, 1, "turn_hand angle_deg")
        self.controller.set_wrist_angle(angle_deg)
        return None

    def _set_joints(self, args: List[str]) -> Optional[str]:
        joints_deg = _floats(args, ARM_JOINT_COUNT, "set_joints j1...j7 (deg)")
        arm = self.controller.arm
        arm.set_joint_target([deg2rad(value) for value in joints_deg])
        if not arm.plan_and_execute():
            return self._planning_failed()
        return None

    def _open(self, args: List[str]) -> None:
        self.controller.open_gripper()
        return None

    def _close(self, args: List[str]) -> None:
        self.controller.close_gripper()
        return None

    def _close_w(self, args: List[str]) -> None:
        (width_mm,) = _floats(args, 1, "close_w width_mm")
        if width_mm <= 0.0:
            raise CommandError("INPUT_ERROR: close_w width_mm (must be > 0)")
        self.controller.close_gripper_with_width(width_mm)
        return None

    def _observer(self, args: List[str]) -> None:
        self.controller.move_to_observer_position()
        return None

    def _place(self, args: List[str]) -> None:
        self.controller.move_to_place_position()
        return None

    def _start(self, args: List[str]) -> None:
        self.controller.move_to_start_position()
        return None

    def _pick(self, args: List[str]) -> None:
        x, y = _floats(args, 2, "pick x y [angle_deg]")
        angle = _parse_number(args[2]) if len(args) > 2 else None
        job = PickJob(pos=Point(x, y, self.controller.grasp_z), tcp_yaw_deg=angle)
        self.controller.pick_routine(job)
        return None

    def _quit(self, args: List[str]) -> str:
        logger.info("Shutdown")
        self.running = False
        return "Shutdown"

    @staticmethod
    def _planning_failed() -> str:
        logger.warning("Planning failed")
        return "Planning failed"


def _build_controller() -> PandaController:
    arm = SimulatedGroup("panda_arm", joints=[0.0] * ARM_JOINT_COUNT)
    hand = SimulatedGroup(
        "panda_hand",
        joints=[0.0, 0.0],
        named_targets={
            "open": (HAND_OPEN_FINGER_M, HAND_OPEN_FINGER_M),
            "close": (0.0, 0.0),
        },
    )
    return PandaController(arm, hand, publish=lambda message: print(message, flush=True))


def main(argv: Optional[List[str]] = None) -> int:
    """Read commands from standard input until end of input or ``quit``."""
    parser = argparse.ArgumentParser(
        prog="pandactl", description="Interactive pick-and-place controller shell."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log progress")
    options = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if options.verbose else logging.WARNING, format="%(message)s"
    )

    shell = CommandShell(_build_controller())
    print(help_text())

    while shell.running:
        print("\n> ", end="", flush=True)
        line = sys.stdin.readline()
        if not line:
            break
        try:
            output = shell.handle(line)
        except CommandError as error:
            print(error, file=sys.stderr, flush=True)
            continue
        if output:
            print(output, flush=True)
    return 0