[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rvenv"
version = "0.1.0"
description = "Create Python virtual environments and start model servers that live in them"
requires-python = ">=3.10"
keywords = ["venv", "virtualenv", "virtual environment", "pip", "model server"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
rve = "rvenv.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rvenv"]

[tool.pytest.ini_options]
addopts = "-ra"
