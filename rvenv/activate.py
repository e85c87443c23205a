"""Loading model configurations and starting model server processes."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

__all__ = [
    "ModelConfig",
    "ModelProcess",
    "load_config",
    "model_start_command",
    "start_model_process",
]


def _require_str(data: Mapping[str, Any], key: str) -> str:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string, got {value!r}")
    return value


@dataclass(frozen=True)
class ModelConfig:
    """Where a model lives and which port its server listens on."""

    name: str
    port: int
    path: Path
    sub_route: str | None = None

    @classmethod
    def from_mapping(cls, data) -> "ModelConfig":
        """Build a configuration from a parsed YAML mapping."""
        if not isinstance(data, Mapping):
            raise ValueError(f"model entry must be a mapping, got {data!r}")
        name = _require_str(data, "name")
        if "port" not in data:
            raise ValueError("missing field `port`")
        port = data["port"]
        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
            raise ValueError(f"field `port` must be an integer in 0..65535, got {port!r}")
        path = Path(_require_str(data, "path"))
        sub_route = data.get("sub_route")
        if sub_route is not None and not isinstance(sub_route, str):
            raise ValueError(f"field `sub_route` must be a string, got {sub_route!r}")
        return cls(name=name, port=port, path=path, sub_route=sub_route)


@dataclass
class ModelProcess:
    """A running model server; killed on exit from a ``with`` block."""

    name: str
    port: int
    process: subprocess.Popen

    def kill(self) -> None:
        """Kill the server process, ignoring failures."""
        try:
            self.process.kill()
            self.process.wait()
        except OSError:
            pass

    def __enter__(self) -> "ModelProcess":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.kill()


def load_config(config_path) -> list[ModelConfig]:
    """Read a YAML list of model configurations."""
    with open(config_path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if not isinstance(data, list):
        raise ValueError("configuration must be a sequence of model entries")
    return [ModelConfig.from_mapping(entry) for entry in data]


def model_start_command(model_config: ModelConfig) -> str:
    """Return the shell command that starts the model's server."""
    activate_script = model_config.path / "venv" / "bin" / "activate"
    return f"source {activate_script} && python3 grpc_server --port {model_config.port}"


def start_model_process(model_config: ModelConfig) -> ModelProcess:
    """Start the model's server in its directory."""
    process = subprocess.Popen(
        ["sh", "-c", model_start_command(model_config)],
        cwd=os.fspath(model_config.path),
    )
    return ModelProcess(name=model_config.name, port=model_config.port, process=process)