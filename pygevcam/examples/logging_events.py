"""
LoggingEvents shows how to receive the library's own log messages

A handler is registered on the system at the priority set by logging.level,
the camera enumeration that follows produces debug messages which are
printed one block per event.
"""

from pygevcam.api import get_system
from pygevcam.api.errors import CameraError
from pygevcam.api.events import LoggingEventHandler, LogLevel
from pygevcam.examples import common


class LoggingEventHandlerImpl(LoggingEventHandler):
    def __init__(self):
        self.events = []

    def on_log_event(self, event_data):
        self.events.append(event_data)
        print("--------Log Event Received----------")
        print(f"Category: {event_data.category}")
        print(f"Priority Value: {event_data.priority}")
        print(f"Priority Name: {event_data.priority_name}")
        print(f"Timestamp: {event_data.timestamp}")
        print(f"NDC: {event_data.ndc}")
        print(f"Thread: {event_data.thread_name}")
        print(f"Message: {event_data.message}")
        print("------------------------------------\n")


def logging_level(config):
    level = config.get("logging", {}).get("level", "DEBUG")
    if isinstance(level, str):
        return LogLevel[level.upper()]
    return LogLevel(level)


def run(system, config) -> int:
    common.print_library_version(system)

    handler = LoggingEventHandlerImpl()
    try:
        level = logging_level(config)
    except (KeyError, ValueError):
        print(f"Unknown logging level {config.get('logging', {}).get('level')}")
        system.release_instance()
        return -1
    system.register_logging_handler(handler)
    system.set_logging_level(level)

    result = 0
    try:
        cam_list = system.get_cameras()
        print(f"Number of cameras detected: {len(cam_list)}\n")
        cam_list.clear()
        system.unregister_logging_handler(handler)
    except CameraError as e:
        print(f"Error: {e}")
        result = -1

    system.release_instance()
    common.wait_for_enter(config, "\nDone! Press Enter to exit...")
    return result


def main(config=None) -> int:
    config = common.prepare_config(config)
    system = get_system(config.get("backend", "aravis"), config)
    return run(system, config)
