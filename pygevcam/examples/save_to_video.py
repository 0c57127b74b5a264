"""
SaveToVideo shows how to write acquired images to a video file

video.type selects "uncompressed", "mjpg" (with video.quality) or "h264"
(with video.bitrate). Images are converted to Mono8 and kept in memory until
the acquisition is over, then written at the camera frame rate.
"""

from pathlib import Path

from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import get_node_checked, is_readable
from pygevcam.examples import common
from pygevcam.imaging import VideoRecorder

UNCOMPRESSED = "uncompressed"
MJPG = "mjpg"
H264 = "h264"

FILE_NAMES = {
    UNCOMPRESSED: "SaveToAvi-Uncompressed",
    MJPG: "SaveToAvi-MJPG",
    H264: "SaveToAvi-H264",
}


def save_list_to_video(nodemap, nodemap_tldevice, images, video_config, output_dir="."):
    """Write the images to a video file, returns the file path"""
    print("\n\n*** CREATING VIDEO ***\n")
    video_type = video_config.get("type", UNCOMPRESSED)
    if video_type not in FILE_NAMES:
        raise CameraError(f"Unknown video type {video_type}")
    if not images:
        raise CameraError("No images to save")

    serial = ""
    node = nodemap_tldevice.get_node("DeviceSerialNumber")
    if is_readable(node):
        serial = node.get_value()
        print(f"Device serial number retrieved as {serial}...")

    frame_rate = get_node_checked(nodemap, "AcquisitionFrameRate", action="retrieve frame rate").get_value()
    print(f"Frame rate to be set to {frame_rate:f}...")

    file_base = FILE_NAMES[video_type]
    if serial:
        file_base = f"{file_base}-{serial}"
    height, width = images[0].shape[:2]
    recorder = VideoRecorder(Path(output_dir) / file_base, video_type, frame_rate, width, height,
                             quality=video_config.get("quality", 75), bitrate=video_config.get("bitrate", 1000000))
    with recorder:
        print(f"Appending {len(images)} images to video file: {recorder.path.name}... \n")
        for i, data in enumerate(images):
            recorder.append(data)
            print(f"\tAppended image {i}...")
    print(f"\nVideo saved at {recorder.path}\n")
    return recorder.path


def acquire_images(cam, config, num_images):
    """Grab num_images, return the complete ones as Mono8 arrays and a success flag"""
    print("\n\n*** IMAGE ACQUISITION ***\n")
    common.set_acquisition_mode(cam.nodemap, "Continuous")
    cam.begin_acquisition()
    print("Acquiring images...\n")

    images = []
    result = True
    try:
        for i in range(num_images):
            try:
                image = cam.get_next_image(config.get("grab_timeout_ms", 1000))
            except CameraError as e:
                print(f"Error: {e}")
                result = False
                continue
            try:
                if common.report_image(image, i):
                    images.append(image.convert("Mono8").data)
            finally:
                image.release()
    finally:
        cam.end_acquisition()
    return images, result


def run_single_camera(cam, config) -> bool:
    video_config = config.get("video", {})
    try:
        result = common.print_device_info(cam.tl_device_nodemap)
        nodemap = common.init_camera(cam, config)
        images, acquired = acquire_images(cam, config, video_config.get("num_images", 30))
        result &= acquired
        save_list_to_video(nodemap, cam.tl_device_nodemap, images, video_config, config.get("output_dir", "."))
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
