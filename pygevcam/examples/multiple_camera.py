"""
MultipleCamera shows how to acquire from every connected camera

With multiple_camera.threaded off the cameras are started together and
polled in turn, one image from each per round. With it on every camera gets
its own thread running the whole configure / acquire / deinit sequence and
the results are collected when all threads have joined.
"""

import threading

from pygevcam.api import get_system
from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import is_readable, node_value_string
from pygevcam.examples import common


def print_device_info(nodemap, serial) -> bool:
    """Same block as common.print_device_info, each line tagged with the serial"""
    print(f"[{serial}] Printing device information ...\n")
    category = nodemap.get_node("DeviceInformation")
    if not is_readable(category):
        print(f"[{serial}] Device control information not available.\n")
        return True
    for feature in category.get_features():
        print(f"[{serial}] {feature.name} : {node_value_string(feature)}")
    print()
    return True


def prepare_camera(cam, config, index):
    nodemap = common.init_camera(cam, config)
    common.set_acquisition_mode(nodemap, "Continuous")
    print(f"Camera {index} acquisition mode set to continuous...")
    cam.begin_acquisition()
    print(f"Camera {index} acquiring images...\n")


def acquire_images(cam_list, config) -> bool:
    """Grab num_images from every camera, one camera after the other each round"""
    print("\n*** IMAGE ACQUISITION ***\n")
    num_images = config.get("num_images", 10)
    timeout_ms = config.get("grab_timeout_ms", 1000)

    started = []
    result = True
    try:
        for i, cam in enumerate(cam_list):
            prepare_camera(cam, config, i)
            started.append(cam)

        serials = [common.get_serial(cam) for cam in cam_list]
        for image_count in range(num_images):
            for i, cam in enumerate(cam_list):
                try:
                    image = cam.get_next_image(timeout_ms)
                except CameraError as e:
                    print(f"Error: {e}")
                    result = False
                    continue
                try:
                    if image.is_incomplete():
                        print(f"Image incomplete with image status {int(image.status)}...\n")
                        continue
                    print(f"Camera {i} grabbed image {image_count}, width = {image.width}, height = {image.height}")
                    common.save_image(image, "AcquisitionMultipleCamera", serials[i], image_count, config)
                except CameraError as e:
                    print(f"Error: {e}")
                    result = False
                finally:
                    image.release()
    finally:
        for cam in started:
            cam.end_acquisition()
    return result


def run_multiple_cameras(cam_list, config) -> bool:
    result = True
    print("\n*** DEVICE INFORMATION ***\n")
    for i, cam in enumerate(cam_list):
        print(f"Printing device information for camera {i}...\n")
        result &= common.print_device_info(cam.tl_device_nodemap)

    try:
        result &= acquire_images(cam_list, config)
    except CameraError as e:
        print(f"Error: {e}")
        result = False
    finally:
        for cam in cam_list:
            if cam.is_valid() and cam.is_initialized():
                cam.deinit()
    return result


class AcquisitionThread(threading.Thread):
    """Runs the full single camera sequence, success is left in self.result"""
    def __init__(self, cam, config):
        super().__init__(name=f"grab-{cam.serial}", daemon=True)
        self.cam = cam
        self.config = config
        self.result = False

    def run(self):
        cam = self.cam
        config = self.config
        serial = cam.serial
        try:
            print(f"\n[{serial}] *** IMAGE ACQUISITION THREAD STARTING ***\n")
            print_device_info(cam.tl_device_nodemap, serial)
            nodemap = common.init_camera(cam, config)
            common.set_acquisition_mode(nodemap, "Continuous")
            cam.begin_acquisition()
            print(f"[{serial}] Started acquiring images...\n")
            try:
                for image_count in range(config.get("num_images", 10)):
                    self.grab(image_count)
            finally:
                cam.end_acquisition()
            cam.deinit()
        except CameraError as e:
            print(f"Error: {e}")
            return
        self.result = True

    def grab(self, image_count):
        cam = self.cam
        serial = cam.serial
        try:
            image = cam.get_next_image(self.config.get("grab_timeout_ms", 1000))
        except CameraError as e:
            print(f"[{serial}] Error: {e}")
            return
        try:
            if image.is_incomplete():
                print(f"[{serial}] Image incomplete with image status {int(image.status)}...\n")
                return
            filename = common.save_image(image, "AcquisitionMultipleThread", serial, image_count, self.config)
            print(f"[{serial}] Grabbed image {image_count}, width = {image.width}, height = {image.height}. "
                  f"Image saved at {filename}\n")
        except CameraError as e:
            print(f"[{serial}] Error: {e}")
        finally:
            image.release()


def run_multiple_threads(cam_list, config) -> bool:
    threads = [AcquisitionThread(cam, config) for cam in cam_list]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    result = True
    for i, thread in enumerate(threads):
        if not thread.result:
            print(f"Grab thread for camera at index {i} exited with errors. "
                  "Please check onscreen print outs for error details")
            result = False
    return result


def run(system, config) -> int:
    common.print_library_version(system)
    cam_list = system.get_cameras()
    print(f"Number of cameras detected: {len(cam_list)}\n")
    if not cam_list:
        cam_list.clear()
        system.release_instance()
        print("Not enough cameras!")
        common.wait_for_enter(config)
        return -1

    print("\nRunning example for all cameras...")
    if config.get("multiple_camera", {}).get("threaded", False):
        result = run_multiple_threads(cam_list, config)
    else:
        result = run_multiple_cameras(cam_list, config)
    print("Example complete...\n")

    cam_list.clear()
    system.release_instance()
    common.wait_for_enter(config, "\nDone! Press Enter to exit...")
    return 0 if result else -1


def main(config=None) -> int:
    config = common.prepare_config(config)
    if not common.check_write_access(config.get("output_dir", ".")):
        common.wait_for_enter(config, "Press Enter to exit...")
        return -1
    return run(get_system(config.get("backend", "aravis"), config), config)
