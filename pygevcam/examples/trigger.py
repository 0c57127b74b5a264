"""
Trigger shows how to trigger the camera from software or from a hardware line

Set [trigger] type = "software" or "hardware" in the config. With a software
trigger each grab waits for Enter (when interactive) and then executes
TriggerSoftware, a hardware trigger waits for a pulse on Line0.
"""

from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import execute_command, set_enum_entry
from pygevcam.examples import common

SOFTWARE = "software"
HARDWARE = "hardware"


def configure_trigger(nodemap, chosen_trigger):
    print("\n\n*** CONFIGURING TRIGGER ***\n")
    print("Note that if the application / user software triggers faster than frame time, the trigger may be "
          "dropped / skipped by the camera.")
    print("If several frames are needed per trigger, a more reliable alternative for such case, is to use the "
          "multi-frame mode.\n")

    if chosen_trigger == SOFTWARE:
        print("Software trigger chosen...")
    elif chosen_trigger == HARDWARE:
        print("Hardware trigger chosen...")
    else:
        raise CameraError(f"Unknown trigger type {chosen_trigger}")

    # the trigger source can only be changed while trigger mode is off
    set_enum_entry(nodemap, "TriggerMode", "Off", action="disable trigger mode")
    print("Trigger mode disabled...")

    set_enum_entry(nodemap, "TriggerSelector", "FrameStart", action="set trigger selector")
    print("Trigger selector set to frame start...")

    if chosen_trigger == SOFTWARE:
        set_enum_entry(nodemap, "TriggerSource", "Software", action="set trigger mode")
        print("Trigger source set to software...")
    else:
        set_enum_entry(nodemap, "TriggerSource", "Line0", action="set trigger mode")
        print("Trigger source set to hardware...")

    set_enum_entry(nodemap, "TriggerMode", "On", action="enable trigger mode")
    print("Trigger mode turned back on...\n")


def grab_next_image_by_trigger(nodemap, chosen_trigger, config) -> bool:
    try:
        if chosen_trigger == SOFTWARE:
            if config.get("interactive", False):
                print("Press the Enter key to initiate software trigger.")
                input()
            execute_command(nodemap, "TriggerSoftware", action="execute trigger")
        else:
            print("Use the hardware to trigger image acquisition.")
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return True


def reset_trigger(nodemap) -> bool:
    try:
        set_enum_entry(nodemap, "TriggerMode", "Off", action="disable trigger mode")
    except CameraError as e:
        print(f"Error: {e}")
        return False
    print("Trigger mode disabled...\n")
    return True


def run_single_camera(cam, config) -> bool:
    chosen_trigger = config.get("trigger", {}).get("type", SOFTWARE)
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        nodemap = common.init_camera(cam, config)
        configure_trigger(nodemap, chosen_trigger)

        result &= common.acquire_images(
            cam, config, "Trigger",
            before_grab=lambda i: grab_next_image_by_trigger(nodemap, chosen_trigger, config))

        result &= reset_trigger(nodemap)
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
