"""
The skeleton shared by the example programs

Every example prints the same device information block, acquires images the
same way and runs once per detected camera. The helpers here print the user
facing report on stdout, diagnostics go to the logger.
"""

from pathlib import Path

from pygevcam.logger import logger
from pygevcam.config import load_config
from pygevcam.api import get_system
from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import is_readable, node_value_string, set_enum_entry, set_feature
from pygevcam.imaging import image_filename


def prepare_config(config=None):
    return config if config is not None else load_config()


def wait_for_enter(config, prompt="Done! Press Enter to exit..."):
    print(prompt)
    if config.get("interactive", False):
        input()


def check_write_access(output_dir) -> bool:
    """The examples save images, fail early if the output directory can't be written"""
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        marker = output_dir / "test.txt"
        marker.write_text("")
        marker.unlink()
    except OSError as e:
        logger.error(f"output directory {output_dir} not writable: {e}")
        print("Failed to create file in current folder.  Please check permissions.")
        return False
    return True


def print_library_version(system):
    version = system.get_library_version()
    print(f"Library version: {version.major}.{version.minor}.{version.type}.{version.build}\n")


def print_device_info(nodemap) -> bool:
    """Print every feature of the DeviceInformation category, name : value

    A camera without the category is reported, that is not a failure.
    """
    print("\n*** DEVICE INFORMATION ***\n")
    category = nodemap.get_node("DeviceInformation")
    if not is_readable(category):
        print("Device control information not available.")
        return True
    for feature in category.get_features():
        print(f"{feature.name} : {node_value_string(feature)}")
    print()
    return True


def get_serial(camera) -> str:
    node = camera.tl_device_nodemap.get_node("DeviceSerialNumber")
    if is_readable(node):
        serial = node.get_value()
        print(f"Device serial number retrieved as {serial}...")
        return serial
    return ""


def set_acquisition_mode(nodemap, mode="Continuous"):
    set_enum_entry(nodemap, "AcquisitionMode", mode,
                   action=f"set acquisition mode to {mode.lower()}")
    print(f"Acquisition mode set to {mode.lower()}...")


def apply_configuration(nodemap, config):
    """Apply the [configuration] table of the config, failures are not fatal"""
    for name, value in config.get("configuration", {}).items():
        try:
            set_feature(nodemap, name, value)
        except (CameraError, KeyError) as e:
            logger.warning(f"unable to apply {name} = {value}: {e}")
        else:
            logger.debug(f"configured {name} = {value}")


def init_camera(camera, config):
    camera.init()
    apply_configuration(camera.nodemap, config)
    return camera.nodemap


def save_image(image, prefix, serial, index, config, pixel_format="Mono8"):
    """Convert and save one image, returns the file name"""
    converted = image.convert(pixel_format)
    filename = image_filename(prefix, serial, index, config.get("image_format", "jpg"),
                              config.get("output_dir", "."))
    converted.save(filename)
    print(f"Image saved at {filename}\n")
    return filename


def report_image(image, index) -> bool:
    """Print the grab line, False if the image is incomplete"""
    if image.is_incomplete():
        print(f"Image incomplete with image status {int(image.status)}...")
        return False
    print(f"Grabbed image {index}, width = {image.width}, height = {image.height}")
    return True


def acquire_images(camera, config, prefix, num_images=None, timeout_ms=None, on_image=None,
                   before_grab=None, set_mode=True) -> bool:
    """Begin acquisition, grab, report, save and release, end acquisition

    before_grab(index) runs ahead of every grab and returns False on failure,
    on_image(image, index) is called for every complete image before it is
    saved. Errors grabbing single images are reported and the loop goes on.
    """
    print("\n*** IMAGE ACQUISITION ***\n")
    nodemap = camera.nodemap
    num_images = config.get("num_images", 10) if num_images is None else num_images
    timeout_ms = config.get("grab_timeout_ms", 1000) if timeout_ms is None else timeout_ms

    if set_mode:
        set_acquisition_mode(nodemap, "Continuous")
    camera.begin_acquisition()
    print("Acquiring images...")
    serial = get_serial(camera)
    print()

    result = True
    try:
        for i in range(num_images):
            if before_grab is not None:
                result &= before_grab(i)
            try:
                image = camera.get_next_image(timeout_ms)
            except CameraError as e:
                print(f"Error: {e}")
                result = False
                continue
            try:
                if report_image(image, i):
                    if on_image is not None:
                        on_image(image, i)
                    save_image(image, prefix, serial, i, config)
            except CameraError as e:
                print(f"Error: {e}")
                result = False
            finally:
                image.release()
    finally:
        camera.end_acquisition()
    return result


def run_example(system, run_single_camera, config, min_cameras=1) -> int:
    """Run run_single_camera(camera, config) for every camera, then release the system"""
    print_library_version(system)
    cam_list = system.get_cameras()
    num_cameras = len(cam_list)
    print(f"Number of cameras detected: {num_cameras}\n")

    if num_cameras < min_cameras:
        cam_list.clear()
        system.release_instance()
        print("Not enough cameras!")
        wait_for_enter(config)
        return -1

    result = True
    for i, cam in enumerate(cam_list):
        print(f"\nRunning example for camera {i}...")
        try:
            result &= run_single_camera(cam, config)
        except CameraError as e:
            print(f"Error: {e}")
            result = False
        finally:
            if cam.is_valid() and cam.is_initialized():
                cam.deinit()
        print(f"Camera {i} example complete...\n")

    cam_list.clear()
    system.release_instance()
    wait_for_enter(config, "\nDone! Press Enter to exit...")
    return 0 if result else -1


def example_main(run_single_camera, config=None, min_cameras=1) -> int:
    """Load the config, check the output directory, open the system and run"""
    config = prepare_config(config)
    if not check_write_access(config.get("output_dir", ".")):
        wait_for_enter(config, "Press Enter to exit...")
        return -1
    system = get_system(config.get("backend", "aravis"), config)
    return run_example(system, run_single_camera, config, min_cameras)