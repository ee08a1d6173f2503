# pandactl

Control logic for a seven-joint arm with a two-finger gripper:
point-to-point and linear moves, gripper commands, predefined joint poses
and a complete pick-and-place routine, driven from an interactive command
shell. It also contains the coordinate translation that turns
vision-system positions (millimetres on the table image) into positions in
the robot base frame.

The motion backend sits behind the `MotionGroup` protocol in
`pandactl.motion`. `SimulatedGroup` implements it in memory: every
accepted target is reached at once, joint targets change only the joint
values and pose targets change only the pose. No kinematics are computed.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install .[test]
pytest
```

## The command shell

```
pandactl
```

Add `-v` / `--verbose` to log progress messages. The shell runs against a
simulated arm (seven joints) and hand (two fingers), prints the help
screen, and then reads one command per line at a `> ` prompt until end of
input or `quit`:

| Command | Effect |
|---|---|
| `help` | show the command list |
| `quit` | leave the shell |
| `stop` | stop arm and hand (also accepted while a pick is running) |
| `mode ptp\|lin` | planner mode used by `move_to` |
| `move_to x y z` | move the tool centre point to (x, y, z) in metres, keeping the current orientation |
| `set_joints j1 ... j7` | set all seven joints in degrees |
| `pick x y [angle_deg]` | pick the object at (x, y), with an optional wrist yaw |
| `open` / `close` | move the gripper to its "open" or "close" configuration |
| `close_w width_mm` | close the gripper to a given width (must be > 0) |
| `turn_hand angle` | set the wrist joint in degrees; negative angles are shifted by 180, the result is clamped to 0–166 |
| `set_orientation qw qx qy qz` | set the default tool orientation |
| `print_pose` / `print_joints` | report the current pose or joint angles |
| `startPos` / `observerPos` / `placePos` | move to a predefined pose |

Malformed input, unknown commands and any command other than `stop` while
a pick routine is running are reported on standard error.

## Using the library

```python
from pandactl.controller import PandaController, PickJob
from pandactl.geometry import Point
from pandactl.motion import SimulatedGroup

arm = SimulatedGroup("panda_arm", joints=[0.0] * 7)
hand = SimulatedGroup(
    "panda_hand",
    joints=[0.0, 0.0],
    named_targets={"open": (0.04, 0.04), "close": (0.0, 0.0)},
)
controller = PandaController(arm, hand, publish=print)

controller.on_goalpose(2)  # place on the second drop-off point
controller.pick_routine(PickJob(pos=Point(0.45, 0.1, 0.017), tcp_yaw_deg=30.0))
print(controller.joints_report())
```

`PandaController` moves the arm to its start pose when it is created. Its
inputs from the vision system are plain method calls:

- `on_sweet_pose(pose)` starts a pick at the pose's x and y, taking the
  wrist yaw from the orientation and the grip width from the last
  `on_robot_status` report (22 mm when there is none).
- `on_robot_status(data)` stores the width in millimetres that leads the
  string; raises `ValueError` if there is none.
- `on_goalpose(goalpose_id)` selects the place target, 1 or 2; any other
  value raises `ValueError`.
- `on_state(state)` moves to the observer pose on entering
  `WAITING_FOR_SELECTION`, unless a pick is running.

After a successful pick the controller calls `publish` with its feedback
message. `CommandShell.handle(line)` from `pandactl.cli` runs a single
shell command against a controller, returning text to show or raising
`CommandError`. `help_text()` returns the help screen.

### Coordinate translation

`pandactl.translator.LinearTranslator` maps a vision position in
millimetres onto the base frame with a fixed origin (0.57 m, 0.185 m) and
swapped, mirrored axes; z is set to 0. `RayTableTranslator` casts a ray
through the camera model (`CameraIntrinsics`) and intersects it with the
table plane, given the camera's `Transform` into the world frame. It
raises `TranslationError` when the ray is parallel to the table or when
the intersection lies behind the camera.

## What it does not do

The package does not connect to a real robot, a motion planner or a
message bus. `SimulatedGroup` is the only `MotionGroup` it ships; to drive
hardware you supply your own implementation of the protocol. The
translators are library classes only: there is no command that listens
for vision poses, and camera transforms must be passed in by the caller.