"""
LookupTable shows how to fill and enable the LUT1 lookup table

Writes a linear table (index -> index) over the whole range in 512 steps,
acquires with the table enabled and disables it again afterwards.
"""

from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import get_node_checked, set_enum_entry, set_value_checked
from pygevcam.examples import common


def print_retrieve_node_failure(node, name):
    print(f"Unable to get {node} ({name} {node} retrieval failed).\n")
    print(f"The {node} may not be available on all camera models...")
    print("Please try a camera with lookup table support.\n")


def configure_lookup_tables(nodemap):
    print("\n\n*** LOOKUP TABLE CONFIGURATION ***\n")
    try:
        set_enum_entry(nodemap, "LUTSelector", "LUT1", action="set lookup table selector")
    except CameraError:
        print_retrieve_node_failure("entry", "LUT selector LUT1")
        raise
    print("Lookup table type set to LUT1...")

    lut_index = get_node_checked(nodemap, "LUTIndex", writable=True, action="set lookup table index")
    lut_value = get_node_checked(nodemap, "LUTValue", writable=True, action="set lookup table value")

    maximum_range = lut_value.get_max() + 1
    print(f"\tMaximum range: {maximum_range}")
    increment = maximum_range // 512
    print(f"\tIncrement: {increment}")

    for i in range(0, maximum_range, increment):
        lut_index.set_value(i)
        lut_value.set_value(i)
    print("All lookup table values set...")

    set_value_checked(nodemap, "LUTEnable", True, action="enable lookup table")
    print("Lookup table enabled...\n")


def reset_lookup_table(nodemap) -> bool:
    try:
        set_value_checked(nodemap, "LUTEnable", False, action="disable lookup table")
    except CameraError as e:
        print(f"Error: {e}")
        return False
    print("Lookup tables disabled...\n")
    return True


def run_single_camera(cam, config) -> bool:
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        nodemap = common.init_camera(cam, config)
        configure_lookup_tables(nodemap)
        result &= common.acquire_images(cam, config, "LookupTable")
        result &= reset_lookup_table(nodemap)
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
