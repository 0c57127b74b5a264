"""
ImageFormat shows how to set a custom image size and pixel format

Each setting is tried separately, a missing node is reported and the rest
are still applied.
"""

from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import is_readable, is_writable
from pygevcam.examples import common


def configure_custom_image_settings(nodemap) -> bool:
    print("\n\n*** CONFIGURING CUSTOM IMAGE SETTINGS ***\n")
    result = True

    pixel_format = nodemap.get_node("PixelFormat")
    if is_readable(pixel_format) and is_writable(pixel_format):
        pixel_format.from_string("Mono8")
        print(f"Pixel format set to {pixel_format.get_current_entry().symbolic}...")
    else:
        print("Pixel format not available...")
        result = False

    for name, label in (("OffsetX", "Offset X"), ("OffsetY", "Offset Y")):
        node = nodemap.get_node(name)
        if is_readable(node) and is_writable(node):
            node.set_value(node.get_min())
            print(f"{label} set to {node.get_value()}...")
        else:
            print(f"{label} not available...")
            result = False

    for name in ("Width", "Height"):
        node = nodemap.get_node(name)
        if is_readable(node) and is_writable(node) and node.get_inc() and node.get_max():
            node.set_value(node.get_max())
            print(f"{name} set to {node.get_value()}...")
        else:
            print(f"{name} not available...")
            result = False
    return result


def run_single_camera(cam, config) -> bool:
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        nodemap = common.init_camera(cam, config)
        result &= configure_custom_image_settings(nodemap)
        result &= common.acquire_images(cam, config, "ImageFormatControl")
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
