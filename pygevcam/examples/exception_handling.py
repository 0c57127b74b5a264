"""
ExceptionHandling shows how to catch camera errors and read their details

exception_handling.type chooses what is raised and how it is caught:
"camera" catches CameraError, "standard" catches a plain python error and
"standard_cast" catches Exception and then checks whether it is a
CameraError.
"""

import traceback

from pygevcam.api import get_system
from pygevcam.api.errors import CameraError
from pygevcam.examples import common

CAMERA_EXCEPTION = "camera"
STANDARD_EXCEPTION = "standard"
STANDARD_CAST_TO_CAMERA = "standard_cast"


def cause_camera_exception(config):
    """Read the node map of a camera that was never initialised"""
    system = get_system(config.get("backend", "aravis"), config)
    try:
        common.print_library_version(system)
        print("System retrieved...")
        cam_list = system.get_cameras()
        print("Camera list retrieved...")
        if not cam_list:
            print("\nNot enough cameras!\n")
            return
        cam_list[0].nodemap.get_node("Width")
        print("Node map read; this part of the code should not be reached...\n")
    finally:
        system.release_instance()


def cause_standard_exception():
    numbers = list(range(10))
    print("List initialized...\n")
    print(f"The highest number in the list is {numbers[10]}.")


def where(e):
    frame = traceback.extract_tb(e.__traceback__)[-1]
    return frame.name, frame.lineno


def print_camera_error(e):
    print(f"Error: {e}")
    function, line = where(e)
    print(f"Error code {int(e.code)} ({e.code.name}) raised in function {function} at line {line}.")


def run(config, chosen=CAMERA_EXCEPTION) -> int:
    if chosen == CAMERA_EXCEPTION:
        try:
            cause_camera_exception(config)
        except CameraError as e:
            print("\nCamera exception caught.\n")
            print_camera_error(e)
    elif chosen == STANDARD_EXCEPTION:
        try:
            cause_standard_exception()
        except IndexError as e:
            print("\nStandard exception caught.\n")
            print(f"Error: {e}")
    elif chosen == STANDARD_CAST_TO_CAMERA:
        try:
            cause_camera_exception(config)
        except Exception as e:
            print("\nStandard exception caught; will be checked for a camera exception.\n")
            if isinstance(e, CameraError):
                print_camera_error(e)
            else:
                print(f"Cannot cast; not a camera exception: {e!r}")
                print(f"Standard error: {e}")
    else:
        print(f"Unknown exception type {chosen}")
        return -1

    common.wait_for_enter(config, "\nDone! Press Enter to exit...")
    return 0


def main(config=None) -> int:
    config = common.prepare_config(config)
    return run(config, config.get("exception_handling", {}).get("type", CAMERA_EXCEPTION))
