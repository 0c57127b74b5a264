import json
from pathlib import Path

import tomli
import toml
import yaml

from pygevcam.utils.tomlencoder import IndentedTomlEncoder

__version__ = "2024.3.1"

CONFIG_SUFFIXES = (".toml", ".yaml", ".yml", ".json")


def open_config(file_path):
    """Read a toml, yaml or json config file, returns None if it can't be read"""
    file_path = Path(file_path).expanduser().resolve()
    if not file_path.exists():
        print(f"No file available at {file_path}")
        return None
    if file_path.suffix == ".toml":
        with open(file_path, "rb") as cf:
            return tomli.load(cf)
    elif file_path.suffix in (".yaml", ".yml"):
        with open(file_path, "r") as cf:
            return yaml.safe_load(cf)
    elif file_path.suffix == ".json":
        with open(file_path, "r") as cf:
            return json.load(cf)
    else:
        print(f"Wrong file type, use one of {CONFIG_SUFFIXES}")
        return None


def save_config(indict, file_path):
    file_path = Path(file_path).expanduser()
    if file_path.suffix == ".toml":
        with open(file_path, "w") as cf:
            toml.dump(indict, cf, IndentedTomlEncoder())
    elif file_path.suffix in (".yaml", ".yml"):
        with open(file_path, "w") as cf:
            yaml.safe_dump(indict, cf, sort_keys=False)
    elif file_path.suffix == ".json":
        with open(file_path, "w") as cf:
            json.dump(indict, cf, indent=4)
    else:
        print("Wrong file type, not saving file")
        return None
    return file_path
