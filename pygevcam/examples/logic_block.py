"""
LogicBlock shows how to trigger the camera from a logic block

Logic block 0 combines three inputs through its lookup table:

    Input0  FrameTriggerWait  LevelHigh
    Input1  UserOutput0       RisingEdge
    Input2  ExposureStart     RisingEdge

With the Enable table set to 0xFC and the Value table to 0x4C the block
output goes high when the camera waits for a trigger and UserOutput0 rises.
The frame start trigger is taken from LogicBlock0, so toggling UserOutput0
from software grabs one image per rising edge.
"""

from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import get_node_checked, set_enum_entry, set_value_checked
from pygevcam.examples import common

LUT_ENABLE = 0xFC
LUT_VALUE = 0x4C
EXPOSURE_TIME = 500000.0

LUT_INPUTS = [
    ("Input0", "FrameTriggerWait", "LevelHigh"),
    ("Input1", "UserOutput0", "RisingEdge"),
    ("Input2", "ExposureStart", "RisingEdge"),
]


def configure_logic_block(nodemap):
    print("\n\n*** CONFIGURING LOGIC BLOCKS ***\n")
    set_enum_entry(nodemap, "LogicBlockSelector", "LogicBlock0", action="set logic block selector to Logic Block 0")
    print("Logic Block 0 selected....")

    set_enum_entry(nodemap, "LogicBlockLUTSelector", "Enable", action="set LUT logic block selector to Enable")
    print("Logic Block LUT set to to Enable...")
    output_value_all = get_node_checked(nodemap, "LogicBlockLUTOutputValueAll", writable=True,
                                        action="set value to LUT logic block output value all")
    output_value_all.set_value(LUT_ENABLE)
    print(f"Logic Block LUT Output Value All set to to 0x{LUT_ENABLE:X}...")

    for input_name, source, activation in LUT_INPUTS:
        set_enum_entry(nodemap, "LogicBlockLUTInputSelector", input_name,
                       action=f"set LUT logic block input selector to {input_name}")
        print(f"Logic Block LUT Input Selector set to to {input_name} ...")
        set_enum_entry(nodemap, "LogicBlockLUTInputSource", source,
                       action=f"set LUT logic block input source to {source}")
        print(f"Logic Block LUT Input Source set to to {source} ...")
        set_enum_entry(nodemap, "LogicBlockLUTInputActivation", activation,
                       action=f"set LUT logic block input activation to {activation}")
        print(f"Logic Block LUT Input Activation set to {activation}...")

    set_enum_entry(nodemap, "LogicBlockLUTSelector", "Value", action="set LUT logic block selector to Value")
    print("Logic Block LUT set to to Value...")
    output_value_all.set_value(LUT_VALUE)
    print(f"Logic Block LUT Output Value All set to to 0x{LUT_VALUE:X}...\n")


def configure_trigger(nodemap):
    print("\n\n*** CONFIGURING TRIGGER ***\n")
    set_enum_entry(nodemap, "TriggerMode", "Off", action="disable trigger mode")
    print("Trigger mode disabled...")
    set_enum_entry(nodemap, "TriggerSource", "LogicBlock0", action="set trigger source")
    print("Trigger source set to logic block 0...")
    set_enum_entry(nodemap, "TriggerActivation", "LevelHigh", action="set trigger activation")
    print("Trigger activation set to level high...")
    set_enum_entry(nodemap, "TriggerMode", "On", action="enable trigger mode")
    print("Trigger mode turned back on...")


def grab_two_images(nodemap) -> bool:
    """Two rising edges on UserOutput0, one trigger each"""
    try:
        set_enum_entry(nodemap, "UserOutputSelector", "UserOutput0", action="set user output selector")
        user_output_value = get_node_checked(nodemap, "UserOutputValue", writable=True,
                                             action="set user output value")
        for value in (False, True, False, True):
            user_output_value.set_value(value)
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return True


def acquire_images(cam, config) -> bool:
    print("\n\n*** IMAGE ACQUISITION ***\n")
    nodemap = cam.nodemap
    num_images = config.get("num_images", 10)
    timeout_ms = config.get("grab_timeout_ms", 1000)

    common.set_acquisition_mode(nodemap, "Continuous")
    set_enum_entry(nodemap, "ExposureAuto", "Off", action="set exposure auto")
    set_value_checked(nodemap, "ExposureTime", EXPOSURE_TIME, action="set exposure time")

    # a start and stop first leaves the camera waiting for its first trigger
    cam.begin_acquisition()
    cam.end_acquisition()
    cam.begin_acquisition()
    print("Acquiring images...")
    serial = common.get_serial(cam)
    print()

    result = True
    image_count = 0
    try:
        while image_count < num_images:
            result &= grab_two_images(nodemap)
            for _ in range(2):
                try:
                    image = cam.get_next_image(timeout_ms)
                except CameraError as e:
                    print(f"Error: {e}\n")
                    result = False
                    image_count += 1
                    continue
                try:
                    if common.report_image(image, image_count):
                        common.save_image(image, "LogicBlock", serial, image_count, config)
                except CameraError as e:
                    print(f"Error: {e}\n")
                    result = False
                finally:
                    image.release()
                image_count += 1
    finally:
        cam.end_acquisition()
    return result


def reset_trigger(nodemap) -> bool:
    try:
        set_enum_entry(nodemap, "TriggerMode", "Off", action="disable trigger mode")
    except CameraError as e:
        print(f"Error: {e}")
        return False
    print("Trigger mode disabled...\n")
    return True


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
        configure_logic_block(nodemap)
        configure_trigger(nodemap)
        result &= acquire_images(cam, config)
        result &= reset_trigger(nodemap)
        result &= reset_exposure(nodemap)
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
