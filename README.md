# rvenv

Create Python virtual environments from the command line. The package can also start
model servers that live inside such environments.

## Installation

```
pip install rvenv
```

## Creating a virtual environment

```
rve DEST [-p PYTHON] [-c | -s] [-u] [-r FILE]
```

- `DEST`: the directory for the environment. It must either not exist or be an
  empty directory.
- `-p`, `--python PYTHON`: the base interpreter. The default is `python3`. It is
  resolved with `command -v`, and shell aliases are followed.
- `-c`, `--copies`: copy the interpreter binary instead of symlinking it.
- `-s`, `--symlinks`: symlink the interpreter binary. This is the default.
- `-u`, `--upgrade-deps`: after bootstrapping pip, run
  `pip install --upgrade pip setuptools wheel`.
- `-r`, `--requirements FILE`: install packages from a requirements file with
  `pip install -r`.
- `--version`: print the version and exit.

`--copies` and `--symlinks` cannot be given together. The command exits with status 2
in that case. If the environment cannot be created, it prints `Error: ...` to standard
error and exits with status 1.

The environment it creates has this layout:

```
DEST/
  bin/python          symlink or copy of the base interpreter
  bin/activate        bash script that activates the environment
  pythonX.Y/
  lib/pythonX.Y/site-packages/
  pyvenv.cfg          home, include-system-site-packages = false, version
```

Pip is bootstrapped with `python -m ensurepip --upgrade`. To activate the environment,
run `source DEST/bin/activate`. To leave it, run `deactivate`. Unless
`VIRTUAL_ENV_DISABLE_PROMPT` is set, activation adds the environment name to the
prompt.

### From Python

```python
from pathlib import Path
from rvenv.venv import create_venv, VenvError

try:
    create_venv(Path("env"), Path("python3"), False, False, None, False)
except VenvError as err:
    print(err)
```

`rvenv.venv` also provides the individual steps:

- `resolve_interpreter` and `parse_command_v_output`
- `get_python_version` and `parse_version`, which return a `PythonVersion` named tuple
- `create_directory_structure`
- `link_interpreter`
- `pyvenv_cfg_text` and `write_pyvenv_cfg`
- `activation_script` and `write_activation_script`
- `bootstrap_pip`
- `install_requirements`

Each step raises `VenvError` when it fails.

## Starting model servers

Model servers are described in a YAML list:

```yaml
- name: sentiment
  port: 50051
  path: /srv/models/sentiment
  sub_route: v2
```

The `name`, `port` and `path` fields are required. `port` must be an integer in
0..65535. `sub_route` is optional. `load_config` raises `ValueError` for malformed
entries.

`start_model_process` runs the following command with `sh -c`, in the model's
directory:

```
source PATH/venv/bin/activate && python3 grpc_server --port PORT
```

`model_start_command` returns that command as a string.

```python
from rvenv.activate import load_config, start_model_process

for config in load_config("models.yaml"):
    with start_model_process(config) as process:
        ...  # the server runs until the block exits
```

`ModelProcess.kill()` stops a server explicitly. Leaving the `with` block does the
same.

## What this package does not do

The package starts model servers but does not talk to them. It has no HTTP front end
that receives prediction requests, and it does not forward requests over gRPC to the
servers it starts. Callers must reach the servers on their ports themselves.