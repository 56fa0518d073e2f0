[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "exdrill"
version = "0.1.0"
description = "Run, verify and track small compiler exercises from the command line"
requires-python = ">=3.11"
dependencies = [
    "watchdog",
]
keywords = ["exercises", "education", "learning", "rustc", "watch"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education :: Computer Aided Instruction (CAI)",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
exdrill = "exdrill.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["exdrill"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
