"""
ChunkData shows how to enable chunk data and read it back

Every available ChunkSelector entry is enabled. The values are printed either
from the image (chunk_data.display = "image") or from the ChunkDataControl
category of the node map (chunk_data.display = "nodemap").
"""

from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import NodeType, get_node_checked, is_readable, is_writable, set_value_checked
from pygevcam.examples import common

IMAGE = "image"
NODEMAP = "nodemap"


def _set_chunk_entries(nodemap, enable):
    selector = get_node_checked(nodemap, "ChunkSelector", action="retrieve chunk selector")
    result = True
    for entry in selector.get_entries():
        if not is_readable(entry):
            continue
        selector.set_int_value(entry.get_value())
        chunk_enable = nodemap.get_node("ChunkEnable")
        if chunk_enable is None:
            print(f"\t{entry.display_name}: unable to get entry from nodemap")
            result = False
        elif chunk_enable.get_value() == enable:
            print(f"\t{entry.display_name}: {'enabled' if enable else 'disabled'}")
        elif is_writable(chunk_enable):
            chunk_enable.set_value(enable)
            print(f"\t{entry.display_name}: {'enabled' if enable else 'disabled'}")
        else:
            print(f"\t{entry.display_name}: not writable")
            result = False
    return result


def configure_chunk_data(nodemap) -> bool:
    print("\n\n*** CONFIGURING CHUNK DATA ***\n")
    set_value_checked(nodemap, "ChunkModeActive", True, action="activate chunk mode")
    print("Chunk mode activated...")

    print("Enabling entries...")
    return _set_chunk_entries(nodemap, True)


def display_chunk_data_from_image(image):
    print("Print chunk data from image...")
    chunk = image.chunk_data
    print(f"\tExposure time: {chunk.get_float('ExposureTime'):f}")
    print(f"\tFrame ID: {chunk.get_int('FrameID')}")
    print(f"\tGain: {chunk.get_float('Gain'):f}")
    print(f"\tHeight: {chunk.get_int('Height')}")
    print(f"\tOffset X: {chunk.get_int('OffsetX')}")
    print(f"\tOffset Y: {chunk.get_int('OffsetY')}")
    print(f"\tWidth: {chunk.get_int('Width')}")
    print(f"\tBlack level: {chunk.get_float('BlackLevel'):f}")


def display_chunk_data_from_nodemap(nodemap):
    print("Printing chunk data from nodemap...")
    category = get_node_checked(nodemap, "ChunkDataControl", action="retrieve chunk data control")
    for feature in category.get_features():
        if not is_readable(feature):
            continue
        if feature.node_type == NodeType.Integer:
            print(f"\t{feature.display_name}: {feature.get_value()}")
        elif feature.node_type == NodeType.Float:
            print(f"\t{feature.display_name}: {feature.get_value():f}")
        elif feature.node_type == NodeType.Boolean:
            print(f"\t{feature.display_name}: {'true' if feature.get_value() else 'false'}")
        elif feature.node_type == NodeType.Enumeration:
            print(f"\t{feature.display_name}: {feature.get_current_entry().symbolic}")
        elif feature.node_type == NodeType.String:
            print(f"\t{feature.display_name}: {feature.get_value()}")


def disable_chunk_data(nodemap) -> bool:
    try:
        print("Disabling entries...")
        result = _set_chunk_entries(nodemap, False)
        print()
        set_value_checked(nodemap, "ChunkModeActive", False, action="deactivate chunk mode")
    except CameraError as e:
        print(f"Error: {e}")
        return False
    print("Chunk mode deactivated...")
    return result


def run_single_camera(cam, config) -> bool:
    display = config.get("chunk_data", {}).get("display", IMAGE)
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        nodemap = common.init_camera(cam, config)
        result &= configure_chunk_data(nodemap)

        if display == NODEMAP:
            on_image = lambda image, i: display_chunk_data_from_nodemap(nodemap)
        else:
            on_image = lambda image, i: display_chunk_data_from_image(image)
        result &= common.acquire_images(cam, config, "ChunkData", on_image=on_image)

        result &= disable_chunk_data(nodemap)
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
