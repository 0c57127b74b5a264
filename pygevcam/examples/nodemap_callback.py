"""
NodeMapCallback shows how to be called back when a node changes

Callbacks are registered on Height and Gain, both are then set to their
maximum and each change is reported by its callback.
"""

from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import get_node_checked, is_readable, set_enum_entry
from pygevcam.examples import common


def on_height_node_update(node):
    if not is_readable(node):
        print("Unable to get node (Height node retrieval failed).\n")
        return
    print("Height callback message:")
    print(f"\tLook! Height changed to {node.get_value()}...\n")


def on_gain_node_update(node):
    if not is_readable(node):
        print("Unable to get node (Gain node retrieval failed).\n")
        return
    print("Gain callback message:")
    print(f"\tLook now! Gain changed to {node.get_value():f}...\n")


def configure_callbacks(nodemap):
    """Returns the callback ids for Height and Gain"""
    print("\n\n*** CALLBACKS CONFIGURATION ***\n")
    set_enum_entry(nodemap, "GainAuto", "Off", action="disable automatic gain")
    print("Automatic gain disabled...")

    height = get_node_checked(nodemap, "Height", action="register height callback")
    callback_height = height.register_callback(on_height_node_update)
    print("Height callback registered...")

    gain = get_node_checked(nodemap, "Gain", action="register gain callback")
    callback_gain = gain.register_callback(on_gain_node_update)
    print("Gain callback registered...\n")
    return callback_height, callback_gain


def change_height_and_gain(nodemap):
    print("\n*** CHANGING HEIGHT & GAIN ***\n")
    height = get_node_checked(nodemap, "Height", writable=True, action="change height")
    height_to_set = height.get_max()
    print("Regular function message:")
    print(f"\tHeight about to be set to {height_to_set}...\n")
    height.set_value(height_to_set)

    gain = get_node_checked(nodemap, "Gain", writable=True, action="change gain")
    gain_to_set = gain.get_max()
    print("Regular function message:")
    print(f"\tGain about to be set to {gain_to_set:f}...\n")
    gain.set_value(gain_to_set)


def reset_callbacks(nodemap, callback_height, callback_gain) -> bool:
    try:
        nodemap.get_node("Height").deregister_callback(callback_height)
        print("Height callback deregistered...")
        nodemap.get_node("Gain").deregister_callback(callback_gain)
        print("Gain callback deregistered...")
        set_enum_entry(nodemap, "GainAuto", "Continuous", action="enable automatic gain")
    except CameraError as e:
        print(f"Error: {e}")
        return False
    print("Automatic gain turned back on...\n")
    return True


def run_single_camera(cam, config) -> bool:
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        nodemap = common.init_camera(cam, config)
        callback_height, callback_gain = configure_callbacks(nodemap)
        try:
            change_height_and_gain(nodemap)
        finally:
            result &= reset_callbacks(nodemap, callback_height, callback_gain)
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
