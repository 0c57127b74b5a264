"""
DeviceEvents shows how to receive device events from the camera

Notification is switched on for every EventSelector entry. The handler is
registered either for all events (device_events.registration = "generic")
or only for EventExposureEnd (device_events.registration = "specific"); a
generic handler ignores everything except the exposure end events.
"""

import threading

from pygevcam.api.errors import CameraError
from pygevcam.api.events import DeviceEventHandler
from pygevcam.api.nodes import get_node_checked, is_readable, is_writable
from pygevcam.examples import common

GENERIC = "generic"
SPECIFIC = "specific"
EVENT_NAME = "EventExposureEnd"


class DeviceEventHandlerImpl(DeviceEventHandler):
    def __init__(self, event_name):
        super().__init__()
        self.event_name = event_name
        self.count = 0
        self.lock = threading.Lock()

    def on_device_event(self, event_name):
        if event_name != self.event_name:
            print(f"\tDevice event occurred; not {self.event_name}; ignoring...")
            return
        with self.lock:
            self.count += 1
            count = self.count
        print(f"\tDevice event {self.get_device_event_name()} with ID {self.get_device_event_id()} "
              f"number {count}...")


def configure_device_events(nodemap, cam, registration=GENERIC):
    """Enable every event notification and register the handler, returns (handler, result)"""
    print("\n\n*** CONFIGURING DEVICE EVENTS ***\n")
    selector = get_node_checked(nodemap, "EventSelector", action="retrieve event selector entries")

    result = True
    print("Enabling event selector entries...")
    for entry in selector.get_entries():
        if not is_readable(entry):
            continue
        selector.set_int_value(entry.get_value())
        notification = nodemap.get_node("EventNotification")
        if not is_writable(notification) or notification.get_entry_by_name("On") is None:
            result = False
            continue
        notification.set_int_value(notification.get_entry_by_name("On").get_value())
        print(f"\t{entry.display_name}: enabled...")

    handler = DeviceEventHandlerImpl(EVENT_NAME)
    if registration == GENERIC:
        cam.register_device_event_handler(handler)
        print("Device event handler registered generally...")
    elif registration == SPECIFIC:
        cam.register_device_event_handler(handler, EVENT_NAME)
        print(f"Device event handler registered specifically to {EVENT_NAME} events...")
    else:
        raise CameraError(f"Unknown device event registration {registration}")
    return handler, result


def reset_device_events(cam, handler) -> bool:
    try:
        cam.unregister_device_event_handler(handler)
    except CameraError as e:
        print(f"Error: {e}")
        return False
    print("Device event handler unregistered...\n")
    return True


def run_single_camera(cam, config) -> bool:
    registration = config.get("device_events", {}).get("registration", GENERIC)
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        nodemap = common.init_camera(cam, config)
        handler, configured = configure_device_events(nodemap, cam, registration)
        result &= configured
        result &= common.acquire_images(cam, config, "DeviceEvents")
        result &= reset_device_events(cam, handler)
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
