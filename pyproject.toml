[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smpaq"
version = "0.1.0"
description = "Multi-server private aggregate queries built on OPRF-based set matching, Paillier encryption and additive sharing"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = [
    "private set intersection",
    "secure computation",
    "oprf",
    "paillier",
    "vrf",
    "privacy",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
smpaq = "smpaq.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["smpaq"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
