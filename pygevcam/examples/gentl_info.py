"""
GenTLInfo prints what the transport layer knows about interfaces and cameras

Interface, device and stream information comes from the transport layer
node maps and is available without initialising a camera. The application
layer values (exposure time, black level, height) need the GenICam node map,
so each camera is initialised for them.
"""

from pygevcam.api import get_system
from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import is_readable, node_value_string
from pygevcam.examples import common

INTERFACE_INFO = [
    ("Interface display name", "InterfaceDisplayName"),
    ("Interface ID", "InterfaceID"),
    ("Interface type", "InterfaceType"),
]
HOST_ADAPTER_INFO = [
    ("Host adapter", "HostAdapterName"),
    ("Host adapter's vendor", "HostAdapterVendor"),
    ("Host adapter driver version", "HostAdapterDriverVersion"),
]
DEVICE_INFO = [
    ("Device serial number", "DeviceSerialNumber"),
    ("Device vendor name", "DeviceVendorName"),
    ("Device display name", "DeviceDisplayName"),
]
STREAM_INFO = [
    ("Stream ID", "StreamID"),
    ("Stream type", "StreamType"),
]
APPLICATION_INFO = [
    ("Exposure time", "ExposureTime"),
    ("Black level", "BlackLevel"),
    ("Height", "Height"),
]


def print_info(nodemap, rows, unavailable="unavailable") -> bool:
    """Print label: value for each row, False if any node was not readable"""
    result = True
    for label, name in rows:
        node = nodemap.get_node(name)
        if is_readable(node):
            print(f"{label}: {node_value_string(node)}")
        else:
            print(f"{label}: {unavailable}")
            result = False
    print()
    return result


def print_host_adapter_info(nodemap) -> bool:
    """Only transports that implement the host adapter nodes print anything"""
    result = True
    for label, name in HOST_ADAPTER_INFO:
        node = nodemap.get_node(name)
        if node is None:
            continue
        if is_readable(node):
            print(f"{label}: {node_value_string(node)}")
        else:
            result = False
    return result


def run(system, config) -> int:
    common.print_library_version(system)
    cam_list = system.get_cameras()
    print(f"Number of cameras detected: {len(cam_list)}\n")
    interfaces = system.get_interfaces()
    print(f"Number of interfaces detected: {len(interfaces)}\n")

    result = True
    print("\n*** PRINTING INTERFACE INFORMATION ***\n")
    for interface in interfaces:
        result &= print_info(interface.tl_nodemap, INTERFACE_INFO, unavailable="Unavailable")
        result &= print_host_adapter_info(interface.tl_nodemap)

    print("\n*** PRINTING TRANSPORT LAYER DEVICE INFORMATION ***\n")
    for cam in cam_list:
        result &= print_info(cam.tl_device_nodemap, DEVICE_INFO)

    print("\n*** PRINTING TRANSPORT LAYER STREAMING INFORMATION ***\n")
    for cam in cam_list:
        result &= print_info(cam.tl_stream_nodemap, STREAM_INFO)

    print("\n*** PRINTING APPLICATION LAYER INFORMATION ***\n")
    for i, cam in enumerate(cam_list):
        print(f"Device: {i}")
        try:
            cam.init()
        except CameraError as e:
            print(f"Error: {e}\n")
            result = False
            continue
        result &= print_info(cam.nodemap, APPLICATION_INFO)
        cam.deinit()

    cam_list.clear()
    system.release_instance()
    common.wait_for_enter(config, "\nDone! Press Enter to exit...")
    return 0 if result else -1


def main(config=None) -> int:
    config = common.prepare_config(config)
    return run(get_system(config.get("backend", "aravis"), config), config)
