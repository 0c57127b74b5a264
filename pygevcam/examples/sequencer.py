"""
Sequencer shows how to cycle the camera through a list of saved states

Five states are saved, each a little larger, longer exposed and with more gain
than the one before. Every state moves on to the next at frame start and the
last one loops back to the first.
"""

from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import execute_command, get_enum_symbolic, get_node_checked, set_enum_entry
from pygevcam.examples import common

NUM_SEQUENCES = 5
EXPOSURE_TIME_MAX_TO_SET = 2000000.0


def print_retrieve_node_failure(node, name):
    print(f"Unable to get {node} ({name} {node} retrieval failed).\n")
    print(f"The {node} may not be available on all camera models...")
    print("Please try a camera with sequencer support.\n")


def configure_sequencer_part_one(nodemap):
    """Turn the sequencer and automatic exposure and gain off, enter configuration mode"""
    print("\n\n*** SEQUENCER CONFIGURATION ***\n")

    # sequencer mode must be off before configuration mode can be entered
    if get_enum_symbolic(nodemap, "SequencerConfigurationValid") == "Yes":
        set_enum_entry(nodemap, "SequencerMode", "Off", action="turn sequencer mode off")
    print("Sequencer mode disabled...")

    set_enum_entry(nodemap, "ExposureAuto", "Off", action="disable automatic exposure")
    print("Automatic exposure disabled...")

    set_enum_entry(nodemap, "GainAuto", "Off", action="disable automatic gain")
    print("Automatic gain disabled...")

    try:
        set_enum_entry(nodemap, "SequencerConfigurationMode", "On", action="turn sequencer configuration mode on")
    except CameraError:
        print_retrieve_node_failure("node", "SequencerConfigurationMode")
        raise
    print("Sequencer configuration mode enabled...\n")


def set_single_state(nodemap, sequence_number, width_to_set, height_to_set, exposure_time_to_set, gain_to_set):
    get_node_checked(nodemap, "SequencerSetSelector", writable=True,
                     action="select state").set_value(sequence_number)
    print(f"Customizing sequence {sequence_number}...")

    width = get_node_checked(nodemap, "Width", writable=True, action="set width")
    width_inc = width.get_inc()
    if width_to_set % width_inc:
        width_to_set = (width_to_set // width_inc) * width_inc
    width.set_value(width_to_set)
    print(f"\tWidth set to {width_to_set}...")

    height = get_node_checked(nodemap, "Height", writable=True, action="set height")
    height_inc = height.get_inc()
    if height_to_set % height_inc:
        height_to_set = (height_to_set // height_inc) * height_inc
    height.set_value(height_to_set)
    print(f"\tHeight set to {height_to_set}...")

    get_node_checked(nodemap, "ExposureTime", writable=True, action="set exposure time").set_value(exposure_time_to_set)
    print(f"\tExposure time set to {exposure_time_to_set:f}...")

    get_node_checked(nodemap, "Gain", writable=True, action="set gain").set_value(gain_to_set)
    print(f"\tGain set to {gain_to_set:f}...")

    set_enum_entry(nodemap, "SequencerTriggerSource", "FrameStart", action="set trigger source")
    print("\tTrigger source set to start of frame...")

    next_sequence = 0 if sequence_number == NUM_SEQUENCES - 1 else sequence_number + 1
    get_node_checked(nodemap, "SequencerSetNext", writable=True, action="set next state").set_value(next_sequence)
    print(f"\tNext sequence set to {next_sequence}...")

    execute_command(nodemap, "SequencerSetSave", action="save state")
    print(f"\tSequence {sequence_number} saved...\n")


def sequence_values(nodemap):
    """The (width, height, exposure, gain) of every state, plus the exposure after the last step"""
    width_max = get_node_checked(nodemap, "Width", action="get width").get_max()
    height_max = get_node_checked(nodemap, "Height", action="get height").get_max()
    exposure = get_node_checked(nodemap, "ExposureTime", action="get exposure time")
    exposure_time_max = min(exposure.get_max(), EXPOSURE_TIME_MAX_TO_SET)
    gain = get_node_checked(nodemap, "Gain", action="get gain")
    gain_max = gain.get_max()

    width_to_set = width_max // 4
    height_to_set = height_max // 4
    exposure_time_to_set = exposure.get_min()
    gain_to_set = gain.get_min()
    states = []
    for _ in range(NUM_SEQUENCES):
        states.append((width_to_set, height_to_set, exposure_time_to_set, gain_to_set))
        width_to_set += width_max // 10
        height_to_set += height_max // 10
        exposure_time_to_set += exposure_time_max / 10.0
        gain_to_set += gain_max / 50.0
    return states, exposure_time_to_set


def configure_sequencer_part_two(nodemap):
    set_enum_entry(nodemap, "SequencerConfigurationMode", "Off", action="turn sequencer configuration mode off")
    print("Sequencer configuration mode disabled...")

    set_enum_entry(nodemap, "SequencerMode", "On", action="turn sequencer mode on")
    print("Sequencer mode enabled...")

    if get_enum_symbolic(nodemap, "SequencerConfigurationValid") != "Yes":
        raise CameraError("Sequencer configuration not valid. Aborting...")
    print("Sequencer configuration valid...\n")


def reset_sequencer(nodemap) -> bool:
    try:
        set_enum_entry(nodemap, "SequencerMode", "Off", action="turn sequencer mode off")
        print("Sequencer mode disabled...")
        set_enum_entry(nodemap, "ExposureAuto", "Continuous", action="enable automatic exposure")
        print("Automatic exposure enabled...")
        set_enum_entry(nodemap, "GainAuto", "Continuous", action="enable automatic gain")
        print("Automatic gain enabled...\n")
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return True


def run_single_camera(cam, config) -> bool:
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        nodemap = common.init_camera(cam, config)

        configure_sequencer_part_one(nodemap)
        states, exposure_time_to_set = sequence_values(nodemap)
        for sequence_number, state in enumerate(states):
            set_single_state(nodemap, sequence_number, *state)

        # exposure is in microseconds, the timeout in milliseconds
        timeout_ms = int(exposure_time_to_set / 1000 + 1000)

        configure_sequencer_part_two(nodemap)
        result &= common.acquire_images(cam, config, "Sequencer", timeout_ms=timeout_ms)

        result &= reset_sequencer(nodemap)
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
