"""
MultipleCameraRecovery shows how to keep acquiring while cameras come and go

Each camera gets continuous acquisition saved to UserSet1, which is made the
default user set so a camera that is power cycled comes back configured.
Image events count grabbed and incomplete images per serial number, an
interface event handler on the system restarts acquisition on arrival and
counts removals. Statistics for every camera are printed at the end and the
default user set is restored.

The example runs until Enter is pressed, or for
multiple_camera_recovery.duration seconds when not interactive.
"""

import threading
import time

from pygevcam.api import get_system
from pygevcam.api.errors import CameraError
from pygevcam.api.events import ImageEventHandler, InterfaceEventHandler
from pygevcam.api.nodes import execute_command, get_node_checked, set_enum_entry
from pygevcam.examples import common
from pygevcam.utils.print import print_table


class GrabInfo:
    def __init__(self, serial):
        self.num_images_grabbed = 0
        self.num_incomplete_images = 0
        self.num_removals = 0
        self.image_event_handler = ImageEventHandlerImpl(serial)


class GrabInfoMap(dict):
    """serial number -> GrabInfo, shared between the event threads"""
    def __init__(self):
        super().__init__()
        self.lock = threading.Lock()


camera_grab_info = GrabInfoMap()


class ImageEventHandlerImpl(ImageEventHandler):
    def __init__(self, serial):
        self.serial = serial

    def on_image_event(self, image):
        with camera_grab_info.lock:
            info = camera_grab_info.get(self.serial)
            if info is None:
                print(f"Error on_image_event: camera {self.serial} not found in grab info map")
                return
            if image.is_incomplete():
                info.num_incomplete_images += 1
                return
            info.num_images_grabbed += 1
            grabbed = info.num_images_grabbed
        if grabbed % 10 == 0:
            print(f"{grabbed} Images grabbed for {self.serial}")


class InterfaceEventHandlerImpl(InterfaceEventHandler):
    def __init__(self, system, config):
        self.system = system
        self.config = config

    def on_device_arrival(self, serial):
        cam = self.system.get_cameras().get_by_serial(serial)
        if cam is None:
            return
        if not configure_camera(cam, self.config):
            print(f"Error on_device_arrival: configuration for device {serial} failed.")
            return
        try:
            cam.begin_acquisition()
        except CameraError as e:
            print(f"Error beginning acquisition: {e}")

    def on_device_removal(self, serial):
        print(f"\n{serial} Device Removal Detected\n")
        with camera_grab_info.lock:
            info = camera_grab_info.get(serial)
            if info is None:
                print(f"Error on_device_removal: camera {serial} not found in grab info map")
                return
            info.num_removals += 1


def configure_user_set1(cam) -> bool:
    """Continuous acquisition saved to UserSet1, which becomes the power up default"""
    try:
        nodemap = cam.nodemap
        set_enum_entry(nodemap, "UserSetSelector", "UserSet1", action="set User Set Selector to User Set 1")
        set_enum_entry(nodemap, "UserSetDefault", "UserSet1", action="set User Set Default to User Set 1")
        set_enum_entry(nodemap, "AcquisitionMode", "Continuous", action="set acquisition mode to continuous")
        execute_command(nodemap, "UserSetSave", action="save Settings to User Set 1")
    except CameraError as e:
        print(f"Error configuring user set 1: {e}")
        return False
    return True


def reset_camera_user_set_to_default(cam):
    try:
        nodemap = cam.nodemap
        set_enum_entry(nodemap, "UserSetSelector", "Default", action="set User Set Selector to Default")
        user_set_default = get_node_checked(nodemap, "UserSetDefault", writable=True,
                                            action="set User Set Default to Default")
        user_set_default.set_int_value(nodemap.get_node("UserSetSelector").get_int_value())
        execute_command(nodemap, "UserSetLoad", action="load Settings from User Set Default")
    except CameraError as e:
        print(f"Error resetting camera to use default user set: {e}")


def configure_camera(cam, config) -> bool:
    """Initialise a camera and register its image handler, first sight also configures UserSet1"""
    try:
        common.init_camera(cam, config)
        serial = cam.serial
        with camera_grab_info.lock:
            found = serial in camera_grab_info
            if not found:
                camera_grab_info[serial] = GrabInfo(serial)
            handler = camera_grab_info[serial].image_event_handler
        print(f"\n\n*** {'RESUM' if found else 'START'}ING RECOVERY EXAMPLE FOR {serial} ***\n")
        if not found:
            print(f"Configuring device {serial}")
            if not configure_user_set1(cam):
                return False
        cam.register_image_event_handler(handler)
    except CameraError as e:
        print(f"Error Running single camera: {e}")
        return False
    return True


def print_example_statistics():
    print("\nPrinting Final Statistics \n")
    with camera_grab_info.lock:
        rows = [(serial, info.num_images_grabbed, info.num_incomplete_images, info.num_removals)
                for serial, info in sorted(camera_grab_info.items())]
    print_table(rows, ["Serial Number:", "Images Grabbed:", "Incomplete Images:", "Camera Removals:"])


def wait_while_running(config):
    if config.get("interactive", False):
        input()
    else:
        time.sleep(config.get("multiple_camera_recovery", {}).get("duration", 0))


def run(system, config) -> int:
    common.print_library_version(system)
    cam_list = system.get_cameras()
    print(f"Number of cameras detected: {len(cam_list)}")
    with camera_grab_info.lock:
        camera_grab_info.clear()

    for cam in cam_list:
        if not configure_camera(cam, config):
            print(f"Camera configuration for device {cam.serial} unsuccessful, aborting...")
            cam_list.clear()
            system.release_instance()
            return -1

    interface_event_handler = InterfaceEventHandlerImpl(system, config)
    system.register_interface_event_handler(interface_event_handler)
    print("\nCameras may be unplugged/plugged in after the example has started.")
    print("After the example begins, please press Enter to end the example...")
    common.wait_for_enter(config, "\nPress Enter to begin...\n")

    for i, cam in enumerate(cam_list):
        try:
            cam.begin_acquisition()
        except CameraError as e:
            print(f"Error starting acquisition on camera at index {i}: {e}")

    wait_while_running(config)

    system.unregister_interface_event_handler(interface_event_handler)
    # cameras that arrived while running are in the refreshed list
    cam_list = system.get_cameras()
    for i, cam in enumerate(cam_list):
        if cam.is_streaming():
            try:
                cam.end_acquisition()
            except CameraError as e:
                print(f"Error ending acquisition on camera at index {i}: {e}")

    for cam in cam_list:
        if cam.is_valid() and cam.is_initialized():
            print(f"Resetting configuration for device {cam.serial}")
            reset_camera_user_set_to_default(cam)
            with camera_grab_info.lock:
                info = camera_grab_info.get(cam.serial)
            if info is not None:
                try:
                    cam.unregister_image_event_handler(info.image_event_handler)
                except CameraError as e:
                    print(f"Error: {e}")
            cam.deinit()

    print()
    print_example_statistics()
    print()
    cam_list.clear()
    system.release_instance()
    common.wait_for_enter(config, "\nDone! Press Enter to exit...")
    return 0


def main(config=None) -> int:
    config = common.prepare_config(config)
    if not common.check_write_access(config.get("output_dir", ".")):
        common.wait_for_enter(config, "Press Enter to exit...")
        return -1
    return run(get_system(config.get("backend", "aravis"), config), config)
