"""
Inference shows how to run a neural network on the camera

1. upload the network and a test image through the file access nodes,
   either to flash (kept after a power cycle) or to DDR (faster, lost)
2. select the network type and enable inference
3. inject the uploaded image at the start of the pipeline
4. trigger frames from InferenceReady and enable the inference chunks
5. print the inference results of every image
6. disable everything again and delete the uploaded files

Set inference.network_type to "detection" or "classification", the network
and injected image are read from inference.network_file and
inference.injected_image_file (defaulting to the usual file names in the
working directory).
"""

from collections import namedtuple
from pathlib import Path

import numpy

from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import get_node_checked, is_readable, is_writable, set_enum_entry, set_value_checked
from pygevcam.examples import common

DETECTION = "detection"
CLASSIFICATION = "classification"

FLASH = "flash"
DDR = "ddr"

NETWORK_FILES = {
    CLASSIFICATION: "Network_Classification",
    DETECTION: "Network_Detection",
}
INJECTED_IMAGE_FILES = {
    CLASSIFICATION: "Injected_Image_Classification.raw",
    DETECTION: "Injected_Image_Detection.raw",
}
INJECTED_IMAGE_SIZE = {
    # width, height
    CLASSIFICATION: (640, 400),
    DETECTION: (720, 540),
}

LABEL_CLASSIFICATION = ["daisy", "dandelion", "roses", "sunflowers", "tulips"]
LABEL_DETECTION = ["background", "aeroplane", "bicycle", "bird", "boat", "bottle", "bus", "car", "cat", "chair",
                   "cow", "diningtable", "dog", "horse", "motorbike", "person", "pottedplant", "sheep", "sofa",
                   "train", "monitor"]

BOX_RECTANGLE = 0
BOX_CIRCLE = 1
BOX_ROTATED_RECTANGLE = 2
BOX_FIELDS = 8

# confidence is in percent, geometry holds the five raw coordinate values
BoundingBox = namedtuple("BoundingBox", ["box_type", "class_id", "confidence", "geometry"])


def label(labels, index):
    return labels[index] if 0 <= index < len(labels) else "N/A"


def decode_bounding_boxes(payload):
    """Unpack the InferenceBoundingBoxResult chunk into a list of BoundingBox

    The chunk is little endian int16: the box count, then per box the type,
    class id, confidence in tenths of a percent and five geometry values.
    A record cut short by the end of the payload is dropped.
    """
    values = numpy.frombuffer(payload, dtype="<i2", count=len(payload)//2)
    if values.size == 0:
        return []
    count = min(int(values[0]), (values.size - 1)//BOX_FIELDS)
    records = values[1:1 + count*BOX_FIELDS].reshape((-1, BOX_FIELDS))
    return [BoundingBox(int(r[0]), int(r[1]), r[2]/10, tuple(int(v) for v in r[3:])) for r in records]


def format_bounding_box(index, box):
    x1, y1, x2, y2, angle = box.geometry
    text = f"\tBox[{index + 1}]: Class {box.class_id} ({label(LABEL_DETECTION, box.class_id)}) - {box.confidence:g}% - "
    if box.box_type == BOX_RECTANGLE:
        return text + f"Rectangle (X={x1}, Y={y1}, W={x2 - x1}, H={y2 - y1})"
    if box.box_type == BOX_CIRCLE:
        return text + f"Circle (X={x1}, Y={y1}, R={x2})"
    if box.box_type == BOX_ROTATED_RECTANGLE:
        return text + f"Rotated Rectangle (X1={x1}, Y1={y1}, X2={x2}, Y2={y2}, angle={angle})"
    return text + "Unknown bounding box type (not supported)"


# file access

def file_operation_succeeded(nodemap):
    status = get_node_checked(nodemap, "FileOperationStatus", action="query FileOperationStatus")
    return status.get_current_entry().symbolic == "Success"


def execute_file_operation(nodemap, operation) -> bool:
    set_enum_entry(nodemap, "FileOperationSelector", operation, action=f"configure FileOperationSelector {operation}")
    get_node_checked(nodemap, "FileOperationExecute", writable=True,
                     action="configure FileOperationExecute").execute()
    return file_operation_succeeded(nodemap)


def camera_delete_file(nodemap) -> bool:
    file_size = get_node_checked(nodemap, "FileSize", action="query FileSize")
    if file_size.get_value() == 0:
        print("No files found, skipping file deletion.")
        return True
    print("Deleting file...")
    if not execute_file_operation(nodemap, "Delete"):
        print(f"Failed to delete file! File Operation Status : "
              f"{nodemap.get_node('FileOperationStatus').get_current_entry().symbolic}")
        return False
    return True


def camera_open_file(nodemap, persistence=FLASH) -> bool:
    print("Opening file for writing...")
    set_enum_entry(nodemap, "FileOpenMode", "Write", action="configure FileOpenMode Write")
    if not execute_file_operation(nodemap, "Open"):
        print("Failed to open file for writing!")
        return False

    write_to_flash = nodemap.get_node("FileWriteToFlash")
    if is_writable(write_to_flash):
        write_to_flash.set_value(persistence == FLASH)
        print(f"FileWriteToFlash is set to {'true' if persistence == FLASH else 'false'}")

    access_length = get_node_checked(nodemap, "FileAccessLength", writable=True,
                                     action="query/configure FileAccessLength")
    access_buffer = get_node_checked(nodemap, "FileAccessBuffer", action="query FileAccessBuffer")
    if access_length.get_value() < access_buffer.get_length():
        try:
            access_length.set_value(access_buffer.get_length())
        except CameraError as e:
            print(f"Unable to set FileAccessLength to FileAccessBuffer length : {e}")
    set_value_checked(nodemap, "FileAccessOffset", 0, action="query/configure FileAccessOffset")
    return True


def camera_write_to_file(nodemap) -> bool:
    if not execute_file_operation(nodemap, "Write"):
        print("Failed to write to file!")
        return False
    return True


def camera_close_file(nodemap) -> bool:
    print("Closing file...")
    if not execute_file_operation(nodemap, "Close"):
        print("Failed to close file!")
        return False
    return True


def load_file_into_memory(path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        print(f"Failed to open {path}: {e}")
        return b""


def file_chunks(data, chunk_size):
    """Yield (buffer, length) pairs for writing data chunk_size bytes at a time

    length is the number of real bytes, a shorter last buffer is padded with
    0xFF up to a multiple of four bytes.
    """
    for start in range(0, len(data), chunk_size):
        chunk = bytes(data[start:start+chunk_size])
        length = len(chunk)
        if length < chunk_size and length % 4:
            chunk += b"\xff"*(4 - length % 4)
        yield chunk, length


def upload_file_to_camera(nodemap, file_selector_entry, data, persistence=FLASH) -> bool:
    if not data:
        print("Empty file. No data will be written to camera. Aborting...")
        return False

    print("\n\n*** CONFIGURING FILE SELECTOR ***\n")
    selector = get_node_checked(nodemap, "FileSelector", writable=True, action="configure FileSelector")
    entry = selector.get_entry_by_name(file_selector_entry)
    if not is_readable(entry):
        print(f"Unable to query FileSelector entry {file_selector_entry}. Aborting...")
        return False
    print(f"Setting FileSelector to {entry.symbolic}...")
    selector.set_int_value(entry.get_value())

    if not camera_delete_file(nodemap):
        print(f"Failed to delete existing file for selector entry {entry.symbolic}. Aborting...")
        return False

    if not camera_open_file(nodemap, persistence):
        # a file left open by an earlier run has to be closed first
        if not camera_close_file(nodemap) or not camera_open_file(nodemap, persistence):
            print("Problem opening file node. Aborting...")
            return False

    access_length = get_node_checked(nodemap, "FileAccessLength", writable=True, action="query FileAccessLength")
    access_buffer = get_node_checked(nodemap, "FileAccessBuffer", writable=True, action="query FileAccessBuffer")
    operation_result = get_node_checked(nodemap, "FileOperationResult", action="query FileOperationResult")

    total_bytes = len(data)
    chunk_size = access_length.get_value()
    write_iterations = -(-total_bytes // chunk_size)
    print("Start uploading to device...")
    print(f"Total Bytes to write : {total_bytes}")
    print(f"FileAccessLength : {chunk_size}")
    print(f"Write Iterations : {write_iterations}")

    print("Writing data to device...")
    total_written = 0
    for i, (chunk, length) in enumerate(file_chunks(data, chunk_size)):
        access_buffer.set(chunk)
        if length < chunk_size:
            access_length.set_value(length)
        if not camera_write_to_file(nodemap):
            print("Writing to stream failed! Aborting...")
            return False
        total_written += operation_result.get_value()
        print(f"Progress : {i*100//write_iterations} %", end="\r", flush=True)
    print("Writing complete")

    if total_written != total_bytes:
        print(f"Only {total_written} of {total_bytes} bytes were written")
    if not camera_close_file(nodemap):
        print("Failed to close file!")
    return total_written == total_bytes


def delete_file_on_camera(nodemap, file_selector_entry) -> bool:
    print("\n\n*** CLEANING UP FILE SELECTOR ***\n")
    try:
        set_enum_entry(nodemap, "FileSelector", file_selector_entry, action="configure FileSelector")
        print(f"Setting FileSelector to {file_selector_entry}")
        if not camera_delete_file(nodemap):
            print(f"Failed to delete existing file for selector entry {file_selector_entry}. Aborting...")
            return False
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return True


# chunk data

def set_chunk_enable(nodemap, entry_name, enable) -> bool:
    selector = get_node_checked(nodemap, "ChunkSelector", action="retrieve chunk selector")
    entry = selector.get_entry_by_name(entry_name)
    if not is_readable(entry):
        return False
    selector.set_int_value(entry.get_value())
    state = "enabled" if enable else "disabled"
    chunk_enable = nodemap.get_node("ChunkEnable")
    if chunk_enable is None or not chunk_enable.is_available():
        print(f"{entry_name} not available")
        return False
    if chunk_enable.get_value() == enable:
        print(f"{entry_name} {state}")
    elif is_writable(chunk_enable):
        chunk_enable.set_value(enable)
        print(f"{entry_name} {state}")
    else:
        print(f"{entry_name} not writable")
        return False
    return True


def inference_chunks(network_type):
    if network_type == DETECTION:
        return ["InferenceFrameId", "InferenceBoundingBoxResult"]
    return ["InferenceFrameId", "InferenceResult", "InferenceConfidence"]


def configure_chunk_data(nodemap, network_type):
    print("\n\n*** CONFIGURING CHUNK DATA ***\n")
    set_value_checked(nodemap, "ChunkModeActive", True, action="activate chunk mode")
    print("Chunk mode activated...")
    for name in inference_chunks(network_type):
        if not set_chunk_enable(nodemap, name, True):
            raise CameraError(f"Unable to enable {name} chunk data. Aborting...")


def disable_chunk_data(nodemap, network_type):
    print("\n\n*** DISABLING CHUNK DATA ***\n")
    for name in inference_chunks(network_type):
        if not set_chunk_enable(nodemap, name, False):
            raise CameraError(f"Unable to disable {name} chunk data. Aborting...")
    set_value_checked(nodemap, "ChunkModeActive", False, action="deactivate chunk mode")
    print("Chunk mode deactivated...")
    set_value_checked(nodemap, "InferenceEnable", False, action="disable inference")
    print("Inference disabled...")


def display_chunk_data(image, network_type) -> bool:
    print("Printing chunk data from image...")
    try:
        chunk = image.chunk_data
        print(f"\tInference Frame ID: {chunk.get_int('InferenceFrameId')}")
        if network_type == DETECTION:
            boxes = decode_bounding_boxes(chunk.get_bytes("InferenceBoundingBoxResult"))
            print("\tInference Bounding Box Result:")
            if not boxes:
                print("\tNo bounding box")
            for i, box in enumerate(boxes):
                print(format_bounding_box(i, box))
        else:
            result = chunk.get_int("InferenceResult")
            print(f"\tInference Result: {result} ({label(LABEL_CLASSIFICATION, result)})")
            print(f"\tInference Confidence: {chunk.get_float('InferenceConfidence'):f}")
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return True


# camera configuration

def configure_trigger(nodemap):
    print("\n\n*** CONFIGURING TRIGGER ***\n")
    print("Configure TriggerSelector to FrameStart")
    set_enum_entry(nodemap, "TriggerSelector", "FrameStart", action="configure TriggerSelector")
    print("Configure TriggerSource to InferenceReady")
    set_enum_entry(nodemap, "TriggerSource", "InferenceReady", action="configure TriggerSource")
    print("Configure TriggerMode to On")
    set_enum_entry(nodemap, "TriggerMode", "On", action="configure TriggerMode")


def disable_trigger(nodemap):
    print("\n\n*** DISABLING TRIGGER ***\n")
    print("Configure TriggerMode to Off")
    set_enum_entry(nodemap, "TriggerMode", "Off", action="configure TriggerMode")


def configure_inference(nodemap, is_enabled, network_type=DETECTION):
    if is_enabled:
        print(f"\n\n*** CONFIGURING INFERENCE ({network_type.upper()}) ***\n")
        entry = network_type.capitalize()
        set_enum_entry(nodemap, "InferenceNetworkTypeSelector", entry,
                       action=f"set inference network type to {entry}")
        print(f"Inference network type set to {entry}...")
    else:
        print("\n\n*** DISABLING INFERENCE ***\n")
    print(f"{'Enabling' if is_enabled else 'Disabling'} inference...")
    set_value_checked(nodemap, "InferenceEnable", is_enabled, action="enable inference")
    print(f"Inference {'enabled' if is_enabled else 'disabled'}...")


def configure_test_pattern(nodemap, is_enabled, network_type=DETECTION):
    if is_enabled:
        print("\n\n*** CONFIGURING TEST PATTERN ***\n")
        generator, pattern = "PipelineStart", "InjectedImage"
    else:
        print("\n\n*** DISABLING TEST PATTERN ***\n")
        generator, pattern = "Sensor", "Off"
    set_enum_entry(nodemap, "TestPatternGeneratorSelector", generator,
                   action=f"query TestPatternGeneratorSelector {generator}")
    print(f"TestPatternGeneratorSelector set to {generator}...")
    set_enum_entry(nodemap, "TestPattern", pattern, action=f"query TestPattern {pattern}")
    print(f"TestPattern set to {pattern}...")
    if is_enabled:
        width, height = INJECTED_IMAGE_SIZE[network_type]
        set_value_checked(nodemap, "InjectedWidth", width, action="query InjectedWidth")
        set_value_checked(nodemap, "InjectedHeight", height, action="query InjectedHeight")


def acquire_images(cam, config, network_type) -> bool:
    return common.acquire_images(cam, config, "Inference",
                                 on_image=lambda image, i: display_chunk_data(image, network_type))


def run_single_camera(cam, config) -> bool:
    settings = config.get("inference", {})
    network_type = settings.get("network_type", DETECTION)
    persistence = settings.get("persistence", FLASH)
    if network_type not in NETWORK_FILES:
        print(f"Unknown network type {network_type}")
        return False
    network_file = settings.get("network_file") or NETWORK_FILES[network_type]
    injected_image_file = settings.get("injected_image_file") or INJECTED_IMAGE_FILES[network_type]

    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        nodemap = common.init_camera(cam, config)

        print("\nChecking camera inference support...")
        if not is_writable(nodemap.get_node("InferenceEnable")):
            print("Inference is not supported on this camera. Aborting...")
            return False

        if settings.get("upload", True):
            for entry, path in (("InferenceNetwork", network_file), ("InjectedImage", injected_image_file)):
                data = load_file_into_memory(path)
                if not data:
                    print(f"Failed to load file path : {path}. Aborting...")
                    return False
                if not upload_file_to_camera(nodemap, entry, data, persistence):
                    return False

        configure_inference(nodemap, True, network_type)
        configure_test_pattern(nodemap, True, network_type)
        configure_trigger(nodemap)
        configure_chunk_data(nodemap, network_type)

        result &= acquire_images(cam, config, network_type)

        disable_chunk_data(nodemap, network_type)
        disable_trigger(nodemap)
        configure_test_pattern(nodemap, False, network_type)
        configure_inference(nodemap, False, network_type)
        if settings.get("upload", True):
            result &= delete_file_on_camera(nodemap, "InjectedImage")
            result &= delete_file_on_camera(nodemap, "InferenceNetwork")
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
