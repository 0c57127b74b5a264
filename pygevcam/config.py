"""
Default settings for the examples and loading of user config files

Any file open_config understands can be merged over DEFAULT_CONFIG, tables
are merged key by key so a file only needs the values it changes.
"""

from pathlib import Path

import tomli

from pygevcam import open_config
from pygevcam.utils import deep_update

DEFAULT_CONFIG = {
    "backend": "aravis",
    "num_images": 10,
    "image_format": "jpg",
    "output_dir": ".",
    "interactive": True,
    "grab_timeout_ms": 1000,
    "monitor_interval": 0.5,
    "log_level": "WARNING",
    "configuration": {},
    "trigger": {
        "type": "software",
    },
    "chunk_data": {
        "display": "image",
    },
    "video": {
        "type": "uncompressed",
        "quality": 75,
        "bitrate": 1000000,
        "num_images": 30,
    },
    "device_events": {
        "registration": "specific",
    },
    "logging": {
        "level": "DEBUG",
    },
    "exception_handling": {
        "type": "camera",
    },
    "enumeration_events": {
        "duration": 0,
    },
    "nodemap_info": {
        "read_type": "value",
        "dump": "",
    },
    "multiple_camera": {
        "threaded": False,
    },
    "multiple_camera_recovery": {
        "duration": 0,
    },
    "inference": {
        "network_type": "detection",
        "network_file": "",
        "injected_image_file": "",
        "persistence": "flash",
        "upload": True,
    },
    "gige": {
        "auto_packet_size": True,
    },
}


def read_config(filename):
    with open(filename, 'rb') as tf:
        config = tomli.load(tf)
    return config


def load_config(file_path=None, **overrides):
    """DEFAULT_CONFIG with the file (if any) and then the keyword overrides merged on top"""
    config = DEFAULT_CONFIG
    if file_path is not None:
        file_path = Path(file_path)
        loaded = read_config(file_path) if file_path.suffix == ".toml" else open_config(file_path)
        if loaded is None:
            raise ValueError(f"Unable to read config from {file_path}")
        config = deep_update(config, loaded)
    return deep_update(config, overrides)
