[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wgcore"
version = "0.1.0"
description = "Building blocks of a userspace WireGuard implementation: replay filtering, rate limiting, TAI64N timestamps, handshake messages, timers and the UAPI configuration protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["wireguard", "vpn", "noise", "networking", "uapi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wgcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
