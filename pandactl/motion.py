"""Motion-group interface and an in-memory simulated implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Sequence, Union, runtime_checkable

from pandactl.geometry import Pose

Target = Union[Pose, tuple]


@dataclass(frozen=True)
class Motion:
    """One executed motion: the planner used and the reached target."""

    pipeline: str
    planner: str
    target: Target
    named: Optional[str] = None


@runtime_checkable
class MotionGroup(Protocol):
    """What the controller needs from a planning group (arm or hand)."""

    name: str
    pose_reference_frame: str
    end_effector_link: str
    planning_time: float
    max_velocity_scaling: float
    max_acceleration_scaling: float

    def set_planner(self, pipeline: str, planner: str) -> None: ...

    def set_start_state_to_current(self) -> None: ...

    def set_pose_target(self, pose: Pose) -> None: ...

    def set_joint_target(self, joints: Sequence[float]) -> None: ...

    def set_named_target(self, name: str) -> None: ...

    def plan_and_execute(self) -> bool: ...

    def move(self) -> bool: ...

    def stop(self) -> None: ...

    def current_pose(self) -> Pose: ...

    def current_joints(self) -> list: ...


@dataclass
class SimulatedGroup:
    """A planning group that reaches every accepted target instantly.

    Joint targets change the joint values only and pose targets change the
    pose only; no kinematics are computed. ``reject`` may veto a target to
    simulate a planning failure.
    """

    name: str
    joints: list = field(default_factory=list)
    pose: Pose = field(default_factory=Pose)
    named_targets: dict = field(default_factory=dict)
    reject: Optional[Callable[[Target], bool]] = None
    pose_reference_frame: str = ""
    end_effector_link: str = ""
    planning_time: float = 5.0
    max_velocity_scaling: float = 1.0
    max_acceleration_scaling: float = 1.0
    pipeline: str = ""
    planner: str = ""
    history: list = field(default_factory=list)
    stop_count: int = 0
    start_joints: Optional[tuple] = None
    _target: Optional[Target] = field(default=None, repr=False)
    _named: Optional[str] = field(default=None, repr=False)

    def set_planner(self, pipeline: str, planner: str) -> None:
        """Select the planning pipeline and planner id."""
        self.pipeline = pipeline
        self.planner = planner

    def set_start_state_to_current(self) -> None:
        """Plan from the present joint state."""
        self.start_joints = tuple(self.joints)

    def set_pose_target(self, pose: Pose) -> None:
        """Aim the next motion at a Cartesian pose."""
        self._target = pose
        self._named = None

    def set_joint_target(self, joints: Sequence[float]) -> None:
        """Aim the next motion at joint values, one per joint."""
        values = tuple(float(j) for j in joints)
        if len(values) != len(self.joints):
            raise ValueError(
                f"{self.name}: expected {len(self.joints)} joint values, got {len(values)}"
            )
        self._target = values
        self._named = None

    def set_named_target(self, name: str) -> None:
        """Aim the next motion at a stored named configuration."""
        try:
            values = self.named_targets[name]
        except KeyError:
            raise ValueError(f"{self.name}: unknown named target '{name}'") from None
        self.set_joint_target(values)
        self._named = name

    def plan_and_execute(self) -> bool:
        """Move to the current target; False if there is none or it is rejected."""
        target = self._target
        if target is None:
            return False
        if self.reject is not None and self.reject(target):
            return False
        if isinstance(target, Pose):
            self.pose = target
        else:
            self.joints = list(target)
        self.history.append(Motion(self.pipeline, self.planner, target, self._named))
        return True

    def move(self) -> bool:
        """Plan and execute in one step."""
        return self.plan_and_execute()

    def stop(self) -> None:
        """Halt any motion in progress."""
        self.stop_count += 1

    def current_pose(self) -> Pose:
        """The pose of the end effector."""
        return self.pose

    def current_joints(self) -> list:
        """A copy of the present joint values."""
        return list(self.joints)