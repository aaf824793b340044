[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gsmcal"
version = "0.4.1"
description = "Find GSM base stations and measure a receiver's clock offset from recorded 8-bit I/Q samples"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "gsm",
    "sdr",
    "iq",
    "calibration",
    "ppm",
    "fcch",
    "arfcn",
    "radio",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Ham Radio",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
gsmcal = "gsmcal.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["gsmcal"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
