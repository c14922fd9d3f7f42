[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lumairdrop"
version = "1.0.4"
description = "Airdrop claim accounting: claim records, per-action claimable amounts with time decay, vesting payouts and genesis state"
requires-python = ">=3.10"
dependencies = []
keywords = ["airdrop", "claims", "vesting", "ledger", "genesis", "decay"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lumairdrop"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
