import math

import pytest

from pandactl.controller import (
    ABOVE_PLACE_JOINTS_JACKAL,
    FEEDBACK_MESSAGE,
    OBSERVER_JOINTS,
    START_JOINTS,
    MotionMode,
    PandaController,
    PickJob,
)
from pandactl.geometry import Point, Pose, Quaternion, deg2rad, rad2deg
from pandactl.motion import SimulatedGroup

OPEN = (0.04, 0.04)
CLOSED = (0.0, 0.0)


def make_controller(reject=None):
    arm = SimulatedGroup(name="panda_arm", joints=[0.0] * 7, reject=reject)
    hand = SimulatedGroup(
        name="panda_hand",
        joints=[0.0, 0.0],
        named_targets={"open": OPEN, "close": CLOSED},
    )
    sent = []
    ctrl = PandaController(arm, hand, publish=sent.append)
    return ctrl, sent


def test_constructor_configures_arm_and_moves_to_start():
    ctrl, _ = make_controller()
    arm = ctrl.arm
    assert arm.pipeline == "pilz_industrial_motion_planner"
    assert arm.planner == "PTP"
    assert arm.end_effector_link == "panda_hand_tcp"
    assert arm.pose_reference_frame == "panda_link0"
    assert arm.planning_time == 20.0
    assert arm.max_velocity_scaling == 0.05
    assert ctrl.hand.max_acceleration_scaling == 0.1
    assert arm.joints == pytest.approx(list(START_JOINTS))
    assert arm.joints[1] == pytest.approx(deg2rad(-45.0))
    assert ctrl.mode is MotionMode.PTP


def test_default_orientation():
    ctrl, _ = make_controller()
    assert ctrl.default_orientation == Quaternion(x=1.0, y=0.0, z=0.0, w=0.0)


def test_set_ptp_and_lin():
    ctrl, _ = make_controller()
    ctrl.set_lin()
    assert ctrl.arm.planner == "LIN"
    ctrl.set_ptp()
    assert ctrl.arm.planner == "PTP"


def test_make_place_pose_standard_and_jackal():
    ctrl, _ = make_controller()
    above = ctrl.make_place_pose(1, True)
    assert tuple(above.position) == pytest.approx((0.0, -0.6, 0.265))
    place = ctrl.make_place_pose(2, False)
    assert tuple(place.position) == pytest.approx((-0.3, -0.6, 0.017))
    assert place.orientation == ctrl.default_orientation


def test_move_arm_to_pose():
    ctrl, _ = make_controller()
    target = Pose(Point(0.4, 0.1, 0.3), ctrl.default_orientation)
    assert ctrl.move_arm_to_pose(target) is True
    assert ctrl.arm.current_pose() == target


def test_set_wrist_angle_negative_is_shifted():
    ctrl, _ = make_controller()
    assert ctrl.set_wrist_angle(-30.0) is True
    assert rad2deg(ctrl.arm.joints[6]) == pytest.approx(150.0)
    assert ctrl.arm.joints[:6] == pytest.approx(list(START_JOINTS[:6]))


@pytest.mark.parametrize("angle", [170.0, 400.0, -500.0, 0.0, 90.0])
def test_set_wrist_angle_is_clamped(angle):
    ctrl, _ = make_controller()
    ctrl.set_wrist_angle(angle)
    deg = rad2deg(ctrl.arm.joints[6])
    assert 0.0 - 1e-9 <= deg <= 166.0 + 1e-9


def test_set_wrist_angle_upper_limit():
    ctrl, _ = make_controller()
    ctrl.set_wrist_angle(170.0)
    assert rad2deg(ctrl.arm.joints[6]) == pytest.approx(166.0)


def test_set_wrist_angle_failure():
    ctrl, _ = make_controller()
    ctrl.arm.reject = lambda target: True
    assert ctrl.set_wrist_angle(10.0) is False


def test_gripper_named_targets():
    ctrl, _ = make_controller()
    ctrl.open_gripper()
    assert tuple(ctrl.hand.joints) == OPEN
    assert ctrl.hand.history[-1].named == "open"
    ctrl.close_gripper()
    assert tuple(ctrl.hand.joints) == CLOSED


def test_close_gripper_with_width_is_symmetric():
    ctrl, _ = make_controller()
    ctrl.close_gripper_with_width(30.0)
    left, right = ctrl.hand.joints
    assert left == right
    assert (left + right) * 1000.0 == pytest.approx(30.0)


def test_stop_movement_stops_both_groups():
    ctrl, _ = make_controller()
    ctrl.stop_movement()
    assert ctrl.arm.stop_count == 1
    assert ctrl.hand.stop_count == 1


def test_observer_position():
    ctrl, _ = make_controller()
    assert ctrl.move_to_observer_position() is True
    assert ctrl.arm.joints == pytest.approx(list(OBSERVER_JOINTS))


def test_move_to_place_position_jackal():
    ctrl, _ = make_controller()
    ctrl.on_goalpose(2)
    assert ctrl.move_to_place_position() is True
    assert ctrl.arm.joints == pytest.approx(list(ABOVE_PLACE_JOINTS_JACKAL))
    assert tuple(ctrl.arm.pose.position) == pytest.approx((-0.3, -0.6, 0.017))
    assert ctrl.arm.planner == "LIN"


def test_move_to_place_position_failure():
    ctrl, _ = make_controller()
    ctrl.arm.reject = lambda target: not isinstance(target, Pose)
    assert ctrl.move_to_place_position() is False


def test_on_goalpose_rejects_invalid():
    ctrl, _ = make_controller()
    with pytest.raises(ValueError):
        ctrl.on_goalpose(3)
    assert ctrl.goalpose_id == 1


def test_pose_and_joints_report():
    ctrl, _ = make_controller()
    lines = ctrl.joints_report().splitlines()
    assert len(lines) == 7
    assert lines[0] == "Joint 1: 0.0 deg"
    assert lines[1] == "Joint 2: -45.0 deg"
    ctrl.move_arm_to_pose(Pose(Point(0.5, 0.25, 0.125), Quaternion(1.0, 0.0, 0.0, 0.0)))
    report = ctrl.pose_report()
    assert report.splitlines()[0] == "Pose: x=0.500 y=0.250 z=0.125"


def test_publish_feedback():
    ctrl, sent = make_controller()
    assert ctrl.publish_feedback() == FEEDBACK_MESSAGE
    assert sent == [FEEDBACK_MESSAGE]


def test_pick_routine_success():
    ctrl, sent = make_controller()
    job = PickJob(pos=Point(0.5, 0.1, 0.017))
    assert ctrl.pick_routine(job) is True
    assert sent == [FEEDBACK_MESSAGE]
    assert ctrl.pick_running is False
    assert ctrl.arm.joints == pytest.approx(list(OBSERVER_JOINTS))
    pose_targets = [m.target for m in ctrl.arm.history if isinstance(m.target, Pose)]
    grasp = pose_targets[1]
    assert tuple(grasp.position) == pytest.approx((0.5, 0.1, ctrl.grasp_z))
    assert tuple(ctrl.hand.joints) == OPEN
    grips = [m.target for m in ctrl.hand.history if m.named is None]
    assert sum(grips[0]) * 1000.0 == pytest.approx(22.0)


def test_pick_routine_failure_clears_running():
    ctrl, sent = make_controller()
    ctrl.arm.reject = lambda t: isinstance(t, Pose) and t.position.z == ctrl.grasp_z
    assert ctrl.pick_routine(PickJob(pos=Point(0.4, 0.0, 0.0))) is False
    assert sent == []
    assert ctrl.pick_running is False


def test_on_sweet_pose_uses_width_and_yaw():
    ctrl, sent = make_controller()
    assert ctrl.on_robot_status("30.5 mm") == 30.5
    half = math.pi / 8
    pose = Pose(Point(0.45, 0.05, 0.0), Quaternion(0.0, 0.0, math.sin(half), math.cos(half)))
    assert ctrl.on_sweet_pose(pose) is True
    grips = [m.target for m in ctrl.hand.history if m.named is None]
    assert sum(grips[0]) * 1000.0 == pytest.approx(30.5)
    wrist = [m.target[6] for m in ctrl.arm.history if isinstance(m.target, tuple)]
    assert any(rad2deg(w) == pytest.approx(45.0) for w in wrist)
    assert sent == [FEEDBACK_MESSAGE]


def test_on_sweet_pose_ignored_while_running():
    ctrl, sent = make_controller()
    ctrl.pick_running = True
    before = len(ctrl.arm.history)
    assert ctrl.on_sweet_pose(Pose(Point(0.4, 0.0, 0.0))) is False
    assert len(ctrl.arm.history) == before
    assert sent == []


def test_on_robot_status_invalid():
    ctrl, _ = make_controller()
    with pytest.raises(ValueError):
        ctrl.on_robot_status("width unknown")
    assert ctrl.object_width_mm is None


def test_on_state_edge_detection():
    ctrl, _ = make_controller()
    before = len(ctrl.arm.history)
    assert ctrl.on_state("WAITING_FOR_SELECTION") is True
    assert ctrl.on_state("WAITING_FOR_SELECTION") is False
    assert len(ctrl.arm.history) == before + 1
    ctrl.on_state("PICKING")
    assert ctrl.on_state("WAITING_FOR_SELECTION") is True


def test_on_state_skipped_while_picking():
    ctrl, _ = make_controller()
    ctrl.pick_running = True
    assert ctrl.on_state("WAITING_FOR_SELECTION") is False
    assert ctrl.last_state == "WAITING_FOR_SELECTION"