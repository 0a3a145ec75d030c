[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "boardfiles"
version = "0.1.0"
description = "Readers for printed circuit board boardview file formats"
requires-python = ">=3.10"
dependencies = []
keywords = ["boardview", "pcb", "eda", "brd", "bdv", "bvr", "fz", "altium", "cad", "cst"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Manufacturing",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Electronic Design Automation (EDA)",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["boardfiles"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
