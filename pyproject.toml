[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "azchess"
version = "0.1.0"
description = "AlphaZero-style chess position encoding, Monte Carlo tree search and a self-play training loop"
requires-python = ">=3.10"
keywords = ["chess", "alphazero", "mcts", "self-play", "neural-network", "fen"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Board Games",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
azchess = "azchess.training:main"

[tool.hatch.build.targets.wheel]
packages = ["azchess"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
