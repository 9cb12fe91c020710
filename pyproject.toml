[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flightkit"
version = "0.1.0"
description = "PLY point-cloud I/O and point-cloud collision checks for quadrotor motion planning"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["ply", "point cloud", "quadrotor", "motion planning", "collision checking"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["flightkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
