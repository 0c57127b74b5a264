import json

import pytest
import tomli
import yaml

from pygevcam import open_config, save_config
from pygevcam.config import DEFAULT_CONFIG, load_config
from pygevcam.utils import deep_update, get_datetime_stamp


def test_deep_update_merges_tables_without_touching_base():
    base = {"a": 1, "table": {"x": 1, "y": 2}}
    merged = deep_update(base, {"b": 2, "table": {"y": 3}})
    assert merged == {"a": 1, "b": 2, "table": {"x": 1, "y": 3}}
    assert base == {"a": 1, "table": {"x": 1, "y": 2}}


def test_load_config_defaults():
    config = load_config()
    assert config == DEFAULT_CONFIG
    assert config["backend"] == "aravis"
    assert config["trigger"]["type"] == "software"


def test_load_config_overrides_are_merged():
    config = load_config(backend="sim", video={"type": "h264"})
    assert config["backend"] == "sim"
    assert config["video"]["type"] == "h264"
    assert config["video"]["quality"] == DEFAULT_CONFIG["video"]["quality"]
    assert DEFAULT_CONFIG["video"]["type"] == "uncompressed"


def test_load_config_from_toml(tmp_path):
    path = tmp_path / "settings.toml"
    path.write_text('num_images = 4\n\n[trigger]\ntype = "hardware"\n\n[configuration]\nExposureAuto = "Off"\n')
    config = load_config(path, output_dir=str(tmp_path))
    assert config["num_images"] == 4
    assert config["trigger"]["type"] == "hardware"
    assert config["configuration"] == {"ExposureAuto": "Off"}
    assert config["output_dir"] == str(tmp_path)


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({"backend": "sim", "multiple_camera": {"threaded": True}}))
    config = load_config(path)
    assert config["backend"] == "sim"
    assert config["multiple_camera"]["threaded"] is True


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ValueError):
        load_config(tmp_path / "missing.yaml")


def test_open_config_rejects_unknown_suffix(tmp_path):
    path = tmp_path / "settings.ini"
    path.write_text("[a]\n")
    assert open_config(path) is None


def test_save_config_formats(tmp_path):
    tree = {"Root": {"DeviceControl": {"DeviceSerialNumber": "20000001", "Width": 1440}}}

    toml_path = save_config(tree, tmp_path / "tree.toml")
    with open(toml_path, "rb") as tf:
        assert tomli.load(tf) == tree

    json_path = save_config(tree, tmp_path / "tree.json")
    assert json.loads(json_path.read_text()) == tree

    yaml_path = save_config(tree, tmp_path / "tree.yaml")
    assert open_config(yaml_path) == tree

    assert save_config(tree, tmp_path / "tree.txt") is None


def test_get_datetime_stamp():
    stamp = get_datetime_stamp()
    assert len(stamp.split("T")) == 2
    date, time = get_datetime_stamp(split=True)
    assert len(date.split("-")) == 3
    assert len(get_datetime_stamp(microseconds=True)) > len(stamp)
