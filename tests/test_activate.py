from pathlib import Path

import pytest

from rvenv.activate import (
    ModelConfig,
    load_config,
    model_start_command,
    start_model_process,
)


def test_from_mapping_full():
    cfg = ModelConfig.from_mapping(
        {"name": "sentiment", "port": 50051, "path": "/models/sentiment", "sub_route": "v2"}
    )
    assert cfg == ModelConfig("sentiment", 50051, Path("/models/sentiment"), "v2")


def test_from_mapping_without_sub_route():
    cfg = ModelConfig.from_mapping({"name": "m", "port": 1, "path": "/m"})
    assert cfg.sub_route is None


@pytest.mark.parametrize(
    "data",
    [
        {"port": 1, "path": "/m"},
        {"name": "m", "path": "/m"},
        {"name": "m", "port": 1},
        {"name": "m", "port": 70000, "path": "/m"},
        {"name": "m", "port": "80", "path": "/m"},
        {"name": "m", "port": True, "path": "/m"},
        {"name": "m", "port": 1, "path": "/m", "sub_route": 5},
        ["not", "a", "mapping"],
    ],
)
def test_from_mapping_rejects_bad_entries(data):
    with pytest.raises(ValueError):
        ModelConfig.from_mapping(data)


def test_load_config(tmp_path):
    config = tmp_path / "models.yaml"
    config.write_text(
        "- name: a\n  port: 50051\n  path: /models/a\n"
        "- name: b\n  port: 50052\n  path: /models/b\n  sub_route: beta\n"
    )
    configs = load_config(config)
    assert [c.name for c in configs] == ["a", "b"]
    assert [c.port for c in configs] == [50051, 50052]
    assert configs[1].sub_route == "beta"
    assert configs[0].path == Path("/models/a")


def test_load_config_requires_list(tmp_path):
    config = tmp_path / "models.yaml"
    config.write_text("name: a\nport: 1\npath: /a\n")
    with pytest.raises(ValueError):
        load_config(config)


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_model_start_command():
    cfg = ModelConfig("m", 50051, Path("/models/m"))
    assert model_start_command(cfg) == (
        "source /models/m/venv/bin/activate && python3 grpc_server --port 50051"
    )


def test_start_model_process_is_killed_on_exit(tmp_path):
    cfg = ModelConfig("m", 50099, tmp_path)
    with start_model_process(cfg) as proc:
        assert proc.name == "m"
        assert proc.port == 50099
        assert proc.process.args == ["sh", "-c", model_start_command(cfg)]
    assert proc.process.poll() is not None


def test_start_model_process_missing_directory(tmp_path):
    cfg = ModelConfig("m", 50099, tmp_path / "absent")
    with pytest.raises(FileNotFoundError):
        start_model_process(cfg)