"""
The example programs, one module each

Every module has a main(config=None) returning the exit status, EXAMPLES
lists the names accepted on the gev_example command line.
"""

import importlib

EXAMPLES = (
    "acquisition",
    "nodemap_info",
    "gentl_info",
    "exposure",
    "image_format",
    "trigger",
    "lookup_table",
    "chunk_data",
    "sequencer",
    "image_events",
    "device_events",
    "enumeration_events",
    "logging_events",
    "nodemap_callback",
    "save_to_video",
    "exception_handling",
    "logic_block",
    "inference",
    "multiple_camera",
    "multiple_camera_recovery",
    "gige_config",
)


def get_example(name):
    """Import an example module by name, raises KeyError for unknown names"""
    if name not in EXAMPLES:
        raise KeyError(f"No example called {name}")
    return importlib.import_module(f"{__name__}.{name}")
