"""Creation of Python virtual environments."""

from __future__ import annotations

import os
import re
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import NamedTuple

__all__ = [
    "VenvError",
    "PythonVersion",
    "create_venv",
    "parse_command_v_output",
    "resolve_interpreter",
    "parse_version",
    "get_python_version",
    "create_directory_structure",
    "link_interpreter",
    "pyvenv_cfg_text",
    "write_pyvenv_cfg",
    "activation_script",
    "write_activation_script",
    "bootstrap_pip",
    "install_requirements",
]

_VERSION_SCRIPT = 'import sys; v=sys.version_info; print(f"{v.major}.{v.minor}.{v.micro}")'
_VERSION_PART = re.compile(r"\+?\d+")
_VENV_PLACEHOLDER = "__VENV_PATH__"

_ACTIVATE_TEMPLATE = r"""
# Save virtual environment path
__RVE_VIRTUAL_ENV="__VENV_PATH__"
export VIRTUAL_ENV="$__RVE_VIRTUAL_ENV"

# Save old PATH
__RVE_OLD_PATH="$PATH"
export PATH="$__RVE_VIRTUAL_ENV/bin:$PATH"

# Save old PS1 if it exists
if [ -z "${__RVE_OLD_PS1:-}" ] && [ -n "${PS1:-}" ]; then
    __RVE_OLD_PS1="$PS1"
fi

# Modify the prompt if not disabled
if [ -z "${VIRTUAL_ENV_DISABLE_PROMPT:-}" ]; then
    PS1="($(basename "$__RVE_VIRTUAL_ENV")) ${PS1:-}"
    export PS1
fi

# Unset PYTHONHOME if it's set (and save it)
if [ -n "${PYTHONHOME:-}" ]; then
    __RVE_OLD_PYTHONHOME="$PYTHONHOME"
    unset PYTHONHOME
fi

# Rehash shell PATH cache to pick up changes
hash -r 2>/dev/null

# Define deactivate function to restore environment
deactivate () {
    # Restore old PATH
    if [ -n "${__RVE_OLD_PATH:-}" ]; then
        export PATH="$__RVE_OLD_PATH"
        unset __RVE_OLD_PATH
    fi

    # Restore old PS1
    if [ -n "${__RVE_OLD_PS1:-}" ]; then
        export PS1="$__RVE_OLD_PS1"
        unset __RVE_OLD_PS1
    fi

    # Restore PYTHONHOME if previously set
    if [ -n "${__RVE_OLD_PYTHONHOME:-}" ]; then
        export PYTHONHOME="$__RVE_OLD_PYTHONHOME"
        unset __RVE_OLD_PYTHONHOME
    fi

    # Unset VIRTUAL_ENV
    unset VIRTUAL_ENV

    # Rehash shell PATH cache again after deactivation
    hash -r 2>/dev/null

    # Unset the deactivate function itself
    unset -f deactivate
}

# Export deactivate function
export -f deactivate > /dev/null
"""


class VenvError(Exception):
    """Raised when a virtual environment cannot be created."""


class PythonVersion(NamedTuple):
    major: int
    minor: int
    micro: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.micro}"


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def create_venv(
    dest,
    python,
    use_copies=False,
    use_symlinks=False,
    requirements=None,
    upgrade_deps=False,
) -> None:
    """Create a virtual environment in ``dest`` based on the ``python`` interpreter."""
    dest = Path(dest)
    python_path = resolve_interpreter(python)
    version = get_python_version(python_path)

    if dest.exists() and (not dest.is_dir() or any(dest.iterdir())):
        raise VenvError(f"Destination {str(dest)!r} already exists and is not empty. Aborting.")

    create_directory_structure(dest, version.major, version.minor)
    link_interpreter(dest, python_path, use_symlinks, use_copies)
    write_pyvenv_cfg(dest, python_path, version)
    write_activation_script(dest)
    bootstrap_pip(dest, upgrade_deps)

    if requirements is not None:
        install_requirements(dest, requirements)


def parse_command_v_output(output: str) -> str:
    """Extract an interpreter path from ``command -v`` output, following aliases."""
    text = output.strip()
    if text.startswith("alias "):
        _, sep, value = text.partition("=")
        if not sep:
            raise VenvError(f"Unexpected alias format: {text}")
        return value.strip("'").strip('"').strip()
    if ": aliased to " in text:
        return text.split(": aliased to", 1)[1].strip()
    return text


def resolve_interpreter(python) -> Path:
    """Return the full path of the interpreter named ``python``."""
    command = f"command -v {shlex.quote(os.fspath(python))}"
    try:
        result = subprocess.run(["sh", "-c", command], capture_output=True)
    except OSError as exc:
        raise VenvError(f"Failed to get path to the system interpreter {str(python)!r}") from exc
    if result.returncode != 0:
        raise VenvError(f"Command failed: {_decode(result.stderr)}")
    return Path(parse_command_v_output(_decode(result.stdout)))


def _parse_part(part: str, label: str) -> int:
    if not _VERSION_PART.fullmatch(part):
        raise VenvError(f"Parsing {label} version from {part}: invalid digit found in string")
    value = int(part)
    if value > 255:
        raise VenvError(f"Parsing {label} version from {part}: number too large")
    return value


def parse_version(text: str) -> PythonVersion:
    """Parse a ``major.minor.micro`` version string."""
    stripped = text.strip()
    parts = stripped.split(".")
    if len(parts) < 3:
        raise VenvError(f"Unexpected version string: {stripped}")
    return PythonVersion(
        _parse_part(parts[0], "major"),
        _parse_part(parts[1], "minor"),
        _parse_part(parts[2], "micro"),
    )


def get_python_version(python_path) -> PythonVersion:
    """Ask the interpreter at ``python_path`` for its version."""
    try:
        result = subprocess.run(
            [os.fspath(python_path), "-c", _VERSION_SCRIPT], capture_output=True
        )
    except OSError as exc:
        raise VenvError(f"Failed to execute {str(python_path)!r} error: {exc}") from exc
    if result.returncode != 0:
        raise VenvError(
            f"Error querying Python version from {str(python_path)!r}: {_decode(result.stderr)}"
        )
    return parse_version(_decode(result.stdout))


def create_directory_structure(dest, major, minor) -> None:
    """Create the bin, include and site-packages directories."""
    dest = Path(dest)
    version_dir = f"python{major}.{minor}"
    targets = [
        (dest / "bin", "Failed to create bin/Scripts directory"),
        (dest / version_dir, "Failed to create include dir"),
        (dest / "lib" / version_dir / "site-packages", "Failed to create site-packages directory"),
    ]
    for path, message in targets:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise VenvError(f"{message}: {str(path)!r}") from exc


def link_interpreter(dest, python_path, use_symlinks, use_copies) -> Path:
    """Symlink (the default) or copy the interpreter into ``dest/bin/python``."""
    target = Path(dest) / "bin" / "python"
    symlink = use_symlinks or not use_copies
    if symlink:
        try:
            target.symlink_to(python_path)
        except OSError as exc:
            raise VenvError(
                f"Failed to symlink Python from {str(python_path)!r} to {str(target)!r}"
            ) from exc
    else:
        try:
            shutil.copy(python_path, target)
        except OSError as exc:
            raise VenvError(
                f"Failed to copy Python executable from {str(python_path)!r} to {str(target)!r}"
            ) from exc
    return target


def pyvenv_cfg_text(python_path, version) -> str:
    """Return the contents of ``pyvenv.cfg`` for the given interpreter."""
    path_text = os.fspath(python_path)
    pure = Path(path_text)
    if not path_text or pure.parent == pure:
        raise VenvError(f"Failed to get parent of {path_text!r}")
    home = os.path.dirname(path_text)
    return f"home = {home}\ninclude-system-site-packages = false\nversion = {version}\n"


def write_pyvenv_cfg(dest, python_path, version) -> Path:
    """Write ``pyvenv.cfg`` into ``dest``."""
    cfg_path = Path(dest) / "pyvenv.cfg"
    text = pyvenv_cfg_text(python_path, version)
    try:
        cfg_path.write_text(text)
    except OSError as exc:
        raise VenvError(f"Failed to write pyvenv.cfg to {str(cfg_path)!r}") from exc
    return cfg_path


def activation_script(venv_path) -> str:
    """Return the bash activation script for the environment at ``venv_path``."""
    return _ACTIVATE_TEMPLATE.replace(_VENV_PLACEHOLDER, os.fspath(venv_path))


def write_activation_script(dest) -> Path:
    """Write an executable ``bin/activate`` script into ``dest``."""
    dest = Path(dest)
    try:
        venv_path = dest.resolve(strict=True)
    except OSError:
        venv_path = dest
    activate_path = dest / "bin" / "activate"
    try:
        activate_path.write_text(activation_script(venv_path))
    except OSError as exc:
        raise VenvError(f"Failed to create {str(activate_path)!r}: {exc}") from exc
    try:
        activate_path.chmod(0o755)
    except OSError as exc:
        raise VenvError("Failed to set permissions on a file") from exc
    return activate_path


def _run_in_venv(python_exe: Path, args: list, failure: str) -> int:
    try:
        return subprocess.run([os.fspath(python_exe), *args]).returncode
    except OSError as exc:
        raise VenvError(f"{failure}. error: {exc}") from exc


def bootstrap_pip(dest, upgrade_deps) -> None:
    """Install pip into the environment, optionally upgrading core packages."""
    python_exe = Path(dest) / "bin" / "python"
    code = _run_in_venv(
        python_exe,
        ["-m", "ensurepip", "--upgrade"],
        f"Failed to run {str(python_exe)!r} -m ensurepip",
    )
    if code != 0:
        raise VenvError(f"`ensurepip` failed with exit code {code}")

    if upgrade_deps:
        code = _run_in_venv(
            python_exe,
            ["-m", "pip", "install", "--upgrade", "pip", "setuptools", "wheel"],
            "Failed to upgrade pip/setuptools/wheel in venv",
        )
        if code != 0:
            raise VenvError(
                f"`pip install --upgrade pip setuptools wheel` failed with exit code {code}"
            )


def install_requirements(dest, requirements) -> None:
    """Install the packages listed in a requirements file into the environment."""
    requirements = Path(requirements)
    if not requirements.exists():
        raise VenvError(f"Requirements file {str(requirements)!r} not found")
    python_exe = Path(dest) / "bin" / "python"
    _run_in_venv(
        python_exe,
        ["-m", "pip", "install", "-r", os.fspath(requirements)],
        f"Failed to install requirements from {str(requirements)!r} using {str(python_exe)!r}",
    )