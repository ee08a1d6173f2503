[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pandactl"
version = "0.1.0"
description = "Command shell and pick-and-place control logic for a seven-joint arm with a parallel gripper, plus vision-to-robot coordinate translation"
requires-python = ">=3.10"
dependencies = []
keywords = ["robotics", "pick-and-place", "gripper", "cli", "coordinate-transform"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Human Machine Interfaces",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pandactl = "pandactl.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["pandactl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
