"""
Exposure shows how to set a manual exposure time and restore automatic exposure

Exposure time is in microseconds, the value is clamped to the camera maximum
and the grab timeout follows it so long exposures do not time out.
"""

from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import get_node_checked, set_enum_entry
from pygevcam.examples import common

EXPOSURE_TIME_US = 2000000.0
NUM_IMAGES = 5


def configure_exposure(nodemap):
    print("\n\n*** CONFIGURING EXPOSURE ***\n")
    set_enum_entry(nodemap, "ExposureAuto", "Off", action="disable automatic exposure")
    print("Automatic exposure disabled...")

    exposure = get_node_checked(nodemap, "ExposureTime", writable=True, action="set exposure time")
    exposure_time_to_set = min(exposure.get_max(), EXPOSURE_TIME_US)
    exposure.set_value(exposure_time_to_set)
    print(f"Shutter time set to {exposure_time_to_set:f} us...\n")


def reset_exposure(nodemap) -> bool:
    try:
        set_enum_entry(nodemap, "ExposureAuto", "Continuous", action="enable automatic exposure")
    except CameraError as e:
        print(f"Error: {e}")
        return False
    print("Automatic exposure enabled...\n")
    return True


def run_single_camera(cam, config) -> bool:
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        nodemap = common.init_camera(cam, config)
        configure_exposure(nodemap)

        exposure = get_node_checked(nodemap, "ExposureTime", action="read exposure time")
        timeout_ms = int(exposure.get_value() / 1000 + 1000)
        result &= common.acquire_images(cam, config, "Exposure", num_images=NUM_IMAGES, timeout_ms=timeout_ms)

        result &= reset_exposure(nodemap)
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
