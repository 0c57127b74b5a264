"""
EnumerationEvents shows how to be told when cameras arrive and leave

One handler is registered on the system and prints the camera count after
every change. One more handler per interface prints which camera arrived on
or left that interface. The example then waits for Enter (interactive) or
for enumeration_events.duration seconds while cameras are plugged in and
removed.
"""

import threading
import time

from pygevcam.api import get_system
from pygevcam.api.errors import CameraError
from pygevcam.api.events import InterfaceEventHandler
from pygevcam.api.nodes import is_readable
from pygevcam.examples import common


class InterfaceEventHandlerImpl(InterfaceEventHandler):
    """Counts cameras when registered on the system, names them when registered on an interface"""
    def __init__(self, system=None, interface=None, interface_id=""):
        self.system = system
        self.interface = interface
        self.interface_id = interface_id
        self.register_to_system = interface is None

    def print_generic_handler_message(self, device_count):
        print("Generic interface event handler:")
        singular = device_count == 1
        print(f"\tThere {'is' if singular else 'are'} {device_count} {'device' if singular else 'devices'} "
              f"on the system.\n")

    def on_device_arrival(self, serial):
        if self.register_to_system:
            self.print_generic_handler_message(len(self.system.get_cameras()))
        else:
            print("Interface event handler:")
            print(f"\tDevice {serial} has arrived on interface '{self.interface_id}'.\n")

    def on_device_removal(self, serial):
        if self.register_to_system:
            try:
                self.print_generic_handler_message(len(self.system.get_cameras()))
            except CameraError as e:
                print(f"Error updating cameras: {e}")
        else:
            print("Interface event handler:")
            print(f"\tDevice {serial} was removed from interface '{self.interface_id}'.\n")

    def get_interface_id(self):
        return self.interface_id


class EnumerationEventManager:
    """Owns the system handler and the per interface handlers"""
    def __init__(self, system):
        self.system = system
        self.system_handler = None
        self.interface_handlers = []
        self.lock = threading.Lock()

    def register_interface_event_to_system(self):
        if self.system_handler is None:
            self.system_handler = InterfaceEventHandlerImpl(system=self.system)
        self.system.register_interface_event_handler(self.system_handler)
        print("Interface event handler registered on the system...")

    def unregister_interface_event_from_system(self):
        if self.system_handler is not None:
            self.system.unregister_interface_event_handler(self.system_handler)
            print("Interface event handler unregistered from system...")
            self.system_handler = None

    def register_all_interface_events(self):
        with self.lock:
            self.interface_handlers = []
        for interface in self.system.get_interfaces():
            node = interface.tl_nodemap.get_node("InterfaceID")
            if not is_readable(node):
                continue
            interface_id = node.get_value()
            with self.lock:
                try:
                    handler = InterfaceEventHandlerImpl(interface=interface, interface_id=interface_id)
                    interface.register_event_handler(handler)
                    self.interface_handlers.append(handler)
                    print(f"Event handler registered to interface '{interface_id}'...")
                except CameraError as e:
                    print(f"Error registering event hander to interface '{interface_id}' :{e}")
        print()

    def unregister_all_interface_events(self):
        for interface in self.system.get_interfaces():
            node = interface.tl_nodemap.get_node("InterfaceID")
            if not is_readable(node):
                continue
            interface_id = node.get_value()
            with self.lock:
                try:
                    for handler in self.interface_handlers:
                        if handler.get_interface_id() == interface_id:
                            interface.unregister_event_handler(handler)
                except CameraError as e:
                    print(f"Error unregistering event hander to interface '{interface_id}' :{e}")
        with self.lock:
            self.interface_handlers = []
        print("Event handler unregistered from interfaces...")


def wait_for_changes(config):
    duration = config.get("enumeration_events", {}).get("duration", 0)
    if config.get("interactive", False):
        print("\nReady! Remove/Plug in cameras to test or press Enter to exit...\n")
        input()
    else:
        print(f"\nReady! Remove/Plug in cameras to test, exiting in {duration} s...\n")
        time.sleep(duration)


def run(system, config) -> int:
    common.print_library_version(system)
    cam_list = system.get_cameras()
    print(f"Number of cameras detected: {len(cam_list)}\n")
    interfaces = system.get_interfaces()
    print(f"Number of interfaces detected: {len(interfaces)}\n")

    print("\n*** CONFIGURING ENUMERATION EVENTS ***\n")
    manager = EnumerationEventManager(system)
    try:
        manager.register_interface_event_to_system()
        manager.register_all_interface_events()
        wait_for_changes(config)
        manager.unregister_all_interface_events()
        manager.unregister_interface_event_from_system()
        result = 0
    except CameraError as e:
        print(f"Error: {e}")
        result = -1

    cam_list.clear()
    system.release_instance()
    common.wait_for_enter(config, "\nDone! Press Enter to exit...")
    return result


def main(config=None) -> int:
    config = common.prepare_config(config)
    system = get_system(config.get("backend", "aravis"), config)
    return run(system, config)
