[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sentinelnet"
version = "0.1.0"
description = "Peer-to-peer networking pieces for file synchronisation: LAN discovery, mesh optimisation, STUN/NAT traversal, a framed wire format and AES helpers"
requires-python = ">=3.10"
keywords = [
    "peer-to-peer",
    "file-sync",
    "networking",
    "stun",
    "nat-traversal",
    "mesh",
    "discovery",
    "aes",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Security :: Cryptography",
    "Typing :: Typed",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sentinelnet"]

[tool.hatch.build.targets.sdist]
include = [
    "sentinelnet",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
