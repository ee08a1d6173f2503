"""Arm and gripper control: command shell, pick-and-place routine, simulated motion groups and coordinate translation."""

__version__ = "0.1.0"
__all__ = ["geometry", "translator", "motion", "controller", "cli"]