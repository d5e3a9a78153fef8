[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "opsys"
version = "0.1.0"
description = "A chmod-like permission tool with event logging, and a FIFO-based task server with a load generator"
requires-python = ">=3.10"
dependencies = []
keywords = ["chmod", "permissions", "fifo", "named-pipe", "producer-consumer", "posix"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xmod = "opsys.xmod.cli:main"
opsys-server = "opsys.server.cli:main"
opsys-loadgen = "opsys.loadgen:main"

[tool.hatch.build.targets.wheel]
packages = ["opsys"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
