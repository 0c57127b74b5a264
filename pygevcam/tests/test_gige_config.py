import pytest

from pygevcam import gev_address
from pygevcam.api import get_system
from pygevcam.examples import gige_config
from pygevcam.utils import deep_update


@pytest.mark.parametrize("args, command, options", [
    ([], "list", {}),
    (["-a"], "auto", {}),
    (["-A"], "auto", {}),
    (["-s", "20000001"], "serial", {"serial": "20000001"}),
    (["-M", "00-11-1C-00-00-01"], "mac", {"mac": "00:11:1C:00:00:01"}),
    (["-s", "1", "-i", "10.0.0.2", "-n", "255.0.0.0", "-g", "10.0.0.1"], "configure",
     {"serial": "1", "ip_address": "10.0.0.2", "subnet_mask": "255.0.0.0", "gateway": "10.0.0.1"}),
    (["-g", "10.0.0.1", "-I", "10.0.0.2", "-s", "1", "-n", "255.0.0.0"], "configure",
     {"serial": "1", "ip_address": "10.0.0.2", "subnet_mask": "255.0.0.0", "gateway": "10.0.0.1"}),
    (["-x"], None, {}),
    (["-s"], None, {}),
    (["-q", "1"], None, {}),
    (["-s", "1", "-i", "10.0.0.2"], None, {}),
])
def test_parse_args(args, command, options):
    assert gige_config.parse_args(args) == (command, options)


@pytest.mark.parametrize("options, valid", [
    ({"serial": "1", "ip_address": "10.0.0.2", "subnet_mask": "255.0.0.0", "gateway": "10.0.0.1"}, True),
    ({"serial": "0", "ip_address": "10.0.0.2", "subnet_mask": "255.0.0.0", "gateway": "10.0.0.1"}, False),
    ({"serial": "", "ip_address": "10.0.0.2", "subnet_mask": "255.0.0.0", "gateway": "10.0.0.1"}, False),
    ({"serial": "1", "ip_address": "255.255.255.255", "subnet_mask": "255.0.0.0", "gateway": "10.0.0.1"}, False),
    ({"serial": "1", "ip_address": "10.0.0.2", "subnet_mask": "0.0.0.0", "gateway": "10.0.0.1"}, False),
    ({"serial": "1", "ip_address": "10.0.0.2", "subnet_mask": "255.0.0.0", "gateway": ""}, False),
])
def test_validate_configure(options, valid):
    assert gige_config.validate_configure(options) is valid


def test_invalid_arguments_print_usage(config, capsys):
    assert gige_config.main(["-z"], config) == -1
    out = capsys.readouterr().out
    assert "*** GigE Config Utility ***" in out
    assert "Usage:" in out


def test_invalid_address_prints_usage(config, capsys):
    args = ["-s", "20000001", "-i", "0.0.0.0", "-n", "255.255.255.0", "-g", "192.168.0.1"]
    assert gige_config.main(args, config) == -1
    out = capsys.readouterr().out
    assert "Error: Invalid IP address, subnet mask or default gateway" in out
    assert "Usage:" in out


def test_list_all(two_camera_config, capsys):
    assert gige_config.main([], two_camera_config) == 0
    out = capsys.readouterr().out
    assert "*** Simulated GigE Interface 0 ***" in out
    assert "** Device 1 **" in out
    assert "DeviceSerialNumber : 20000002" in out
    assert "GevDeviceIPAddress : 192.168.0.11" in out
    assert "GevDeviceMACAddress : 00:11:1C:00:00:02" in out
    assert "GevPersistentIPAddress : 0.0.0.0" in out


def test_list_skips_non_gige_interfaces(config, capsys):
    config = deep_update(config, {"sim": {
        "interfaces": [{"id": "usb0", "display_name": "USB3 Interface", "type": "USB3Vision"}],
        "cameras": [{"interface": "usb0", "type": "USB3Vision"}],
    }})
    assert gige_config.main([], config) == 0
    assert "USB3 Interface" not in capsys.readouterr().out


def test_list_by_serial(config, capsys):
    assert gige_config.main(["-s", "20000001"], config) == 0
    out = capsys.readouterr().out
    assert "Listing device info from serial number" in out
    assert "DeviceSerialNumber : 20000001" in out

    assert gige_config.main(["-s", "99"], config) == 0
    assert "Could not discover camera with serial number: 99" in capsys.readouterr().out


def test_list_by_mac(config, capsys):
    assert gige_config.main(["-m", "00-11-1c-00-00-01"], config) == 0
    assert "DeviceSerialNumber : 20000001" in capsys.readouterr().out

    assert gige_config.main(["-m", "00:00:00:00:00:00"], config) == 0
    assert "Could not discover camera with MAC address: 00:00:00:00:00:00" in capsys.readouterr().out


def test_wrong_subnet_warning_and_auto_configure(config, capsys):
    config = deep_update(config, {"sim": {"cameras": [{"ip": "10.1.2.3", "wrong_subnet": True}]}})
    assert gige_config.main([], config) == 0
    assert gige_config.WRONG_SUBNET_WARNING in capsys.readouterr().out

    system = get_system("sim", config)
    gige_config.auto_configure(system)
    out = capsys.readouterr().out
    assert "AutoForceIP executed for camera at index 0" in out
    assert "Auto-configuration complete" in out
    gige_config.list_all_device_info(system)
    out = capsys.readouterr().out
    assert gige_config.WRONG_SUBNET_WARNING not in out
    assert "GevDeviceIPAddress : 192.168.0.100" in out
    system.release_instance()


def test_configure_persistent_ip(config, capsys):
    system = get_system("sim", config)
    gige_config.run(system, "configure", {"serial": "20000001", "ip_address": "192.168.0.50",
                                          "subnet_mask": "255.255.255.0", "gateway": "192.168.0.1"})
    out = capsys.readouterr().out
    assert "Current IP Address is 192.168.0.10" in out
    assert "Persistent IP enabled set to 1" in out
    assert "Persistent IP address set to 192.168.0.50" in out
    assert "Persistent default gateway set to 192.168.0.1" in out
    assert "Device force IP command executed" in out

    cam = system.get_cameras()[0]
    assert not cam.is_initialized()
    ip = cam.tl_device_nodemap.get_node("GevDeviceIPAddress").get_value()
    assert gev_address.dotted_address(ip) == "192.168.0.50"

    # the persistent address is also what the camera comes back with
    system.unplug("20000001")
    system.get_cameras()
    system.plug("20000001")
    cam = system.get_cameras()[0]
    gateway = cam.tl_device_nodemap.get_node("GevDeviceGateway").get_value()
    assert gev_address.dotted_address(gateway) == "192.168.0.1"
    system.release_instance()


def test_configure_unknown_serial(config, capsys):
    args = ["-s", "99", "-i", "192.168.0.50", "-n", "255.255.255.0", "-g", "192.168.0.1"]
    assert gige_config.main(args, config) == 0
    assert "Error: Could not find a camera with serial number: 99" in capsys.readouterr().out
