"""
GigEConfig lists GigE Vision cameras and configures their IP addresses

    gev_config                                  list every camera on every GigE interface
    gev_config -a                               auto force IP on every GigE interface
    gev_config -s <serial>                      list one camera by serial number
    gev_config -m <MAC address>                 list one camera by MAC address
    gev_config -s <serial> -i <IP> -n <netmask> -g <gateway>
                                                set and force a persistent IP configuration

Flags are case insensitive and the four options of the last form can come in
any order.
"""

from pygevcam import gev_address
from pygevcam.api import get_system
from pygevcam.api.errors import CameraError, ErrorCode
from pygevcam.api.nodes import is_readable, is_writable
from pygevcam.examples import common

WRONG_SUBNET_WARNING = ("Warning: Camera is on a wrong subnet. Run auto force IP (with -a option) "
                        "to configure the camera correctly.")

TL_ADDRESS_NODES = ["GevDeviceIPAddress", "GevDeviceSubnetMask", "GevDeviceGateway"]
PERSISTENT_ADDRESS_NODES = ["GevPersistentIPAddress", "GevPersistentSubnetMask", "GevPersistentDefaultGateway"]


def usage():
    print("\nUsage:\n")
    print("gev_config [-a | -s <serial number> | -m <MAC address>]")
    print("gev_config [-s <serial number> -i <IP address> -n <netmask> -g <gateway>]")
    print("\nOptions:")
    print("No arguments will list all discoverable cameras")
    print("-a : Auto-configure all discoverable cameras")
    print("-s : Serial number is used to specify camera")
    print("-m : MAC address is used to specify camera")
    print("     Bytes of MAC address must be separated by either a ':' or '-' character")
    print(f"-i : IP address to assign to camera. Cannot be {gev_address.ZERO_IP_ADDRESS} or "
          f"{gev_address.BROADCAST_ADDRESS}.")
    print(f"-n : Subnet mask to assign to camera. Cannot be {gev_address.ZERO_IP_ADDRESS}.")
    print(f"-g : Default gateway to assign to camera. Cannot be {gev_address.ZERO_IP_ADDRESS} or "
          f"{gev_address.BROADCAST_ADDRESS}.")
    print("\n")


def print_device_info(cam):
    nodemap_tldevice = cam.tl_device_nodemap
    for name in ["DeviceSerialNumber", "DeviceModelName", "DeviceVendorName"]:
        node = nodemap_tldevice.get_node(name)
        if is_readable(node):
            print(f"{name} : {node.to_string()}")
    for name in TL_ADDRESS_NODES:
        node = nodemap_tldevice.get_node(name)
        if is_readable(node):
            print(f"{name} : {gev_address.dotted_address(node.get_value())}")
    node = nodemap_tldevice.get_node("GevDeviceMACAddress")
    if is_readable(node):
        print(f"GevDeviceMACAddress : {gev_address.mac_address(node.get_value())}")

    try:
        cam.init()
        nodemap = cam.nodemap
        for name in PERSISTENT_ADDRESS_NODES:
            node = nodemap.get_node(name)
            if is_readable(node):
                print(f"{name} : {gev_address.dotted_address(node.get_value())}")
        cam.deinit()
    except CameraError as e:
        if e.code == ErrorCode.INVALID_ADDRESS:
            print(WRONG_SUBNET_WARNING)
        else:
            print(e)


def print_interface_name(interface):
    node = interface.tl_nodemap.get_node("InterfaceDisplayName")
    if is_readable(node):
        print(f"*** {node.get_value()} ***")
    else:
        print("*** Unknown Interface (Display name not readable) ***")


def query_interface(interface):
    if not interface.is_gige():
        return
    print_interface_name(interface)
    cam_list = interface.get_cameras()
    if not cam_list:
        print("No devices detected.\n")
        return
    for i, cam in enumerate(cam_list):
        print(f"** Device {i} **")
        print_device_info(cam)
        print()
    cam_list.clear()


def list_all_device_info(system):
    print("---> Listing all discoverable cameras...\n")
    for interface in system.get_interfaces():
        query_interface(interface)


def list_device_info_by_serial(system, serial):
    print("---> Listing device info from serial number...\n")
    cam = system.get_cameras().get_by_serial(serial)
    if cam is None:
        print(f"--> Could not discover camera with serial number: {serial}")
        return
    print_device_info(cam)
    print()


def list_device_info_by_mac(system, mac):
    print("---> Listing device info from MAC Address...\n")
    mac = gev_address.normalize_mac(mac).upper()
    found = False
    for cam in system.get_cameras():
        node = cam.tl_device_nodemap.get_node("GevDeviceMACAddress")
        if is_readable(node) and gev_address.mac_address(node.get_value()) == mac:
            print_device_info(cam)
            print()
            found = True
    if not found:
        print(f"--> Could not discover camera with MAC address: {mac}")


def auto_configure(system):
    print("---> Setting all GigE cameras discovered to an IP configuration")
    print("---> that will allow it to work with this host...\n")
    for i, interface in enumerate(system.get_interfaces()):
        interface_type = interface.tl_nodemap.get_node("InterfaceType")
        if not is_readable(interface_type):
            print(f"Unable to read InterfaceType for interface at index {i}")
            continue
        if not interface.is_gige():
            continue
        print_interface_name(interface)
        interface.update_cameras()

        nodemap = interface.tl_nodemap
        auto_force_ip = nodemap.get_node("GevDeviceAutoForceIP")
        if not is_writable(auto_force_ip):
            print("Warning : Force IP node not available for this interface\n")
            continue
        device_selector = nodemap.get_node("DeviceSelector")
        if not is_writable(device_selector):
            print("Unable to write to the DeviceSelector node while forcing IP\n")
            continue
        for index in range(len(interface.get_cameras())):
            device_selector.set_value(index)
            auto_force_ip.execute()
            print(f"AutoForceIP executed for camera at index {index}")
        print()
    print("---> Auto-configuration complete\n")


def set_persistent_value(nodemap, nodemap_tldevice, persistent_name, force_name, address, what):
    """Write one persistent address node and the matching force IP node"""
    persistent = nodemap.get_node(persistent_name)
    if not is_writable(persistent):
        print(f"Error: Cannot set a persistent {what} value")
        return
    value = gev_address.ipv4_to_int(address)
    persistent.set_value(value)
    print(f"Persistent {what} set to {gev_address.dotted_address(persistent.get_value())}")
    force = nodemap_tldevice.get_node(force_name)
    if is_writable(force):
        force.set_value(value)


def configure_camera(system, serial, ip_address, subnet_mask, gateway):
    cam = system.get_cameras().get_by_serial(serial)
    if cam is None:
        print(f"Error: Could not find a camera with serial number: {serial}")
        return
    try:
        cam.init()
        nodemap = cam.nodemap
        nodemap_tldevice = cam.tl_device_nodemap
        device_type = nodemap_tldevice.get_node("DeviceType")
        if not is_readable(device_type) or device_type.get_current_entry().symbolic != "GigEVision":
            print("Warning: Persistent IP can only be set for GigE vision cameras\n")
        else:
            current_ip = nodemap.get_node("GevCurrentIPAddress")
            if is_readable(current_ip):
                print(f"Current IP Address is {gev_address.dotted_address(current_ip.get_value())}")
            else:
                print("Error: Cannot read the current IP address")

            persistent_ip = nodemap.get_node("GevCurrentIPConfigurationPersistentIP")
            if is_writable(persistent_ip):
                persistent_ip.set_value(True)
                print(f"Persistent IP enabled set to {int(persistent_ip.get_value())}")
            else:
                print("Error: Cannot enable persistent IP address")

            set_persistent_value(nodemap, nodemap_tldevice, "GevPersistentIPAddress", "GevDeviceForceIPAddress",
                                 ip_address, "IP address")
            set_persistent_value(nodemap, nodemap_tldevice, "GevPersistentSubnetMask",
                                 "GevDeviceForceSubnetMask", subnet_mask, "subnet mask")
            set_persistent_value(nodemap, nodemap_tldevice, "GevPersistentDefaultGateway",
                                 "GevDeviceForceGateway", gateway, "default gateway")
            cam.deinit()

            force_ip = nodemap_tldevice.get_node("GevDeviceForceIP")
            if is_writable(force_ip):
                force_ip.execute()
                print("Device force IP command executed")
            else:
                print("Warning: Force IP is not supported by this transport, the persistent IP "
                      "is used after the next power cycle")
        if cam.is_initialized():
            cam.deinit()
    except CameraError as e:
        if e.code == ErrorCode.INVALID_ADDRESS:
            print(WRONG_SUBNET_WARNING)
        else:
            print(f"Error: {e}")


def parse_args(args):
    """Work out the command from the argument list

    Returns a (command, options) tuple, command is one of list, auto, serial,
    mac, configure or None when the arguments are not a valid command.
    """
    args = list(args)
    if not args:
        return "list", {}
    flags = [arg.lower() for arg in args]
    if len(args) == 1 and flags[0] == "-a":
        return "auto", {}
    if len(args) == 2:
        if flags[0] == "-s":
            return "serial", {"serial": args[1]}
        if flags[0] == "-m":
            return "mac", {"mac": gev_address.normalize_mac(args[1])}
        return None, {}
    if len(args) == 8:
        names = {"-s": "serial", "-i": "ip_address", "-n": "subnet_mask", "-g": "gateway"}
        options = {"serial": "", "ip_address": "", "subnet_mask": "", "gateway": ""}
        for flag, value in zip(flags[::2], args[1::2]):
            if flag in names:
                options[names[flag]] = value
        return "configure", options
    return None, {}


def validate_configure(options) -> bool:
    if not options["serial"] or options["serial"] == gev_address.ZERO_SERIAL:
        print("Error: Please specify a valid serial number")
        return False
    if not (gev_address.validate_ipv4(options["ip_address"])
            and gev_address.validate_ipv4(options["subnet_mask"], is_subnet_mask=True)
            and gev_address.validate_ipv4(options["gateway"])):
        print("Error: Invalid IP address, subnet mask or default gateway")
        return False
    return True


def run(system, command, options):
    if command == "list":
        list_all_device_info(system)
    elif command == "auto":
        auto_configure(system)
    elif command == "serial":
        list_device_info_by_serial(system, options["serial"])
    elif command == "mac":
        list_device_info_by_mac(system, options["mac"])
    elif command == "configure":
        configure_camera(system, options["serial"], options["ip_address"], options["subnet_mask"],
                         options["gateway"])


def main(args=(), config=None) -> int:
    print("\n*** GigE Config Utility ***\n")
    command, options = parse_args(args)
    if command == "configure" and not validate_configure(options):
        command = None
    if command is None:
        usage()
        return -1

    config = common.prepare_config(config)
    system = get_system(config.get("backend", "aravis"), config)
    try:
        run(system, command, options)
    finally:
        system.release_instance()
    return 0
