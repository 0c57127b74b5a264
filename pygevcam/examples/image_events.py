"""
ImageEvents shows how to receive images through an image event handler

The handler saves images as they arrive on the acquisition thread, the main
thread only polls the handler count every 200 ms until enough have arrived.
"""

import time

from pygevcam.api.errors import CameraError
from pygevcam.api.events import ImageEventHandler
from pygevcam.api.nodes import is_readable
from pygevcam.examples import common

SLEEP_DURATION_MS = 200


class ImageEventHandlerImpl(ImageEventHandler):
    def __init__(self, cam, config, num_images=10):
        node = cam.tl_device_nodemap.get_node("DeviceSerialNumber")
        self.device_serial_number = node.get_value() if is_readable(node) else ""
        self.config = config
        self.num_images = num_images
        self.image_count = 0

    def on_image_event(self, image):
        if self.image_count >= self.num_images:
            return
        print("Image event occurred...")
        if image.is_incomplete():
            print(f"Image incomplete with image status {int(image.status)}...\n")
            return
        print(f"Grabbed image {self.image_count}, width = {image.width}, height = {image.height}")
        common.save_image(image, "ImageEvents", self.device_serial_number, self.image_count, self.config)
        self.image_count += 1

    def get_image_count(self):
        return self.image_count

    def get_max_images(self):
        return self.num_images


def configure_image_events(cam, config):
    handler = ImageEventHandlerImpl(cam, config, config.get("num_images", 10))
    cam.register_image_event_handler(handler)
    return handler


def wait_for_images(cam, handler) -> bool:
    while handler.get_image_count() < handler.get_max_images():
        if not cam.is_valid():
            print("Camera removed while waiting for images")
            return False
        print("\t//")
        print(f"\t// Sleeping for {SLEEP_DURATION_MS} ms. Grabbing images...")
        print("\t//")
        time.sleep(SLEEP_DURATION_MS/1000)
    return True


def reset_image_events(cam, handler) -> bool:
    try:
        cam.unregister_image_event_handler(handler)
    except CameraError as e:
        print(f"Error: {e}")
        return False
    print("Image events unregistered...\n")
    return True


def acquire_images(cam, handler) -> bool:
    print("\n\n*** IMAGE ACQUISITION ***\n")
    common.set_acquisition_mode(cam.nodemap, "Continuous")
    cam.begin_acquisition()
    print("Acquiring images...")
    try:
        result = wait_for_images(cam, handler)
    finally:
        cam.end_acquisition()
    return result


def run_single_camera(cam, config) -> bool:
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        common.init_camera(cam, config)
        handler = configure_image_events(cam, config)
        result &= acquire_images(cam, handler)
        result &= reset_image_events(cam, handler)
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
