[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gpgomea"
version = "0.1.0"
description = "Tree-based genetic programming building blocks: operators, expression trees, semantic backpropagation and variation"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "genetic programming",
    "symbolic regression",
    "evolutionary computation",
    "semantic backpropagation",
    "kd-tree",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["gpgomea"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
