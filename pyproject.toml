[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rebos"
version = "3.5.2"
description = "NixOS-like repeatability for any Linux distro."
requires-python = ">=3.11"
dependencies = [
    "tomli-w",
]
keywords = ["package-manager", "declarative", "linux", "generations", "git"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
rebos = "rebos.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rebos"]

[tool.pytest.ini_options]
addopts = "-ra"
