"""
Acquisition shows how to acquire images

Sets continuous acquisition mode, grabs num_images images, converts them to
Mono8 and saves them as Acquisition-<serial>-<n>.
"""

from pygevcam.api.errors import CameraError
from pygevcam.examples import common


def run_single_camera(cam, config) -> bool:
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        common.init_camera(cam, config)
        result &= common.acquire_images(cam, config, "Acquisition")
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
