[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uthread"
version = "0.1.0"
description = "User-level threads with a FIFO scheduler, optional preemption and semaphores"
requires-python = ">=3.10"
dependencies = []
keywords = ["threads", "scheduler", "semaphore", "green-threads", "cooperative"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
uthread-demo = "uthread.demos:main"

[tool.hatch.build.targets.wheel]
packages = ["uthread"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
