import pytest

from pygevcam.api.errors import CameraError, ErrorCode
from pygevcam.api.nodes import (AccessMode, NodeType, check_feature, clamp_to_node, execute_command,
                                get_enum_symbolic, get_feature, get_features, get_node_checked, is_readable,
                                is_writable, node_value_string, set_enum_entry, set_feature)


def test_transport_layer_nodemap_before_init(system):
    cam = system.get_cameras()[0]
    assert not cam.is_initialized()
    assert cam.serial == "20000001"
    assert cam.tl_device_nodemap.get_node("DeviceModelName").get_value() == "Sim GEV Camera"
    with pytest.raises(CameraError) as excinfo:
        cam.nodemap
    assert excinfo.value == ErrorCode.NOT_INITIALIZED


def test_node_types_and_access(camera):
    nodemap = camera.nodemap
    assert nodemap.get_node("Width").node_type == NodeType.Integer
    assert nodemap.get_node("ExposureTime").node_type == NodeType.Float
    assert nodemap.get_node("PixelFormat").node_type == NodeType.Enumeration
    assert nodemap.get_node("TriggerSoftware").node_type == NodeType.Command
    assert nodemap.get_node("DeviceControl").node_type == NodeType.Category
    assert nodemap.get_node("NoSuchNode") is None
    assert not is_readable(None)

    serial = nodemap.get_node("DeviceSerialNumber")
    assert serial.get_access_mode() == AccessMode.RO
    assert is_readable(serial) and not is_writable(serial)
    # exposure time is only writable with automatic exposure off
    assert not is_writable(nodemap.get_node("ExposureTime"))
    set_enum_entry(nodemap, "ExposureAuto", "Off")
    assert is_writable(nodemap.get_node("ExposureTime"))


def test_get_node_checked(camera):
    nodemap = camera.nodemap
    assert get_node_checked(nodemap, "Width").name == "Width"
    with pytest.raises(CameraError) as excinfo:
        get_node_checked(nodemap, "NoSuchNode")
    assert excinfo.value.code == ErrorCode.NOT_AVAILABLE
    with pytest.raises(CameraError) as excinfo:
        get_node_checked(nodemap, "DeviceSerialNumber", writable=True, action="change the serial")
    assert excinfo.value.code == ErrorCode.ACCESS_DENIED
    assert "change the serial" in str(excinfo.value)


def test_integer_range_and_increment(camera):
    width = camera.nodemap.get_node("Width")
    assert width.get_max() == 1440
    width.set_value(640)
    assert width.get_value() == 640
    with pytest.raises(CameraError) as excinfo:
        width.set_value(2000)
    assert excinfo.value.code == ErrorCode.INVALID_PARAMETER
    with pytest.raises(CameraError):
        width.set_value(643)
    # the offset range follows the width
    assert camera.nodemap.get_node("OffsetX").get_max() == 1440 - 640


def test_enumeration_entries(camera):
    nodemap = camera.nodemap
    entry = set_enum_entry(nodemap, "PixelFormat", "Mono12")
    assert entry.symbolic == "Mono12"
    assert get_enum_symbolic(nodemap, "PixelFormat") == "Mono12"
    assert nodemap.get_node("PixelFormat").to_string() == "Mono12"
    with pytest.raises(CameraError) as excinfo:
        set_enum_entry(nodemap, "PixelFormat", "RGB8")
    assert excinfo.value.code == ErrorCode.NOT_AVAILABLE


def test_selector_indexed_values(camera):
    nodemap = camera.nodemap
    selector = nodemap.get_node("UserOutputSelector")
    value = nodemap.get_node("UserOutputValue")
    selector.from_string("UserOutput1")
    value.set_value(True)
    selector.from_string("UserOutput0")
    assert value.get_value() is False
    selector.from_string("UserOutput1")
    assert value.get_value() is True


def test_trigger_source_locked_while_trigger_on(camera):
    nodemap = camera.nodemap
    set_enum_entry(nodemap, "TriggerMode", "On")
    with pytest.raises(CameraError) as excinfo:
        set_enum_entry(nodemap, "TriggerSource", "Line0")
    assert excinfo.value.code == ErrorCode.ACCESS_DENIED
    set_enum_entry(nodemap, "TriggerMode", "Off")
    set_enum_entry(nodemap, "TriggerSource", "Line0")
    assert get_enum_symbolic(nodemap, "TriggerSource") == "Line0"


def test_set_feature_snaps_to_increment(camera):
    nodemap = camera.nodemap
    feature = set_feature(nodemap, "Height", 481)
    assert feature.value in (480, 482)
    assert set_feature(nodemap, "PixelFormat", "Mono16") == "Mono16"
    assert get_feature(nodemap, "Height").max == 1080
    with pytest.raises(KeyError):
        set_feature(nodemap, "NoSuchNode", 1)
    with pytest.raises(CameraError):
        set_feature(nodemap, "DeviceSerialNumber", "1234")
    assert check_feature(nodemap, "Height", 480)
    assert not check_feature(nodemap, "Height", 5000)


def test_clamp_and_value_strings(camera):
    nodemap = camera.nodemap
    gain = nodemap.get_node("Gain")
    assert clamp_to_node(gain, 100.0) == gain.get_max()
    assert clamp_to_node(gain, -1.0) == gain.get_min()
    assert node_value_string(nodemap.get_node("PixelFormat")) == "Mono8"
    assert node_value_string(nodemap.get_node("FileAccessBuffer")) == "<1024 bytes>"
    assert node_value_string(nodemap.get_node("ChunkFrameID")) == "Node not readable"


def test_node_callbacks(camera):
    nodemap = camera.nodemap
    seen = []
    height = nodemap.get_node("Height")
    fid = height.register_callback(lambda node: seen.append(node.get_value()))
    height.set_value(600)
    height.deregister_callback(fid)
    height.set_value(602)
    assert seen == [600]


def test_commands(camera):
    nodemap = camera.nodemap
    with pytest.raises(CameraError) as excinfo:
        execute_command(nodemap, "UserSetSave")
    assert excinfo.value.code == ErrorCode.ACCESS_DENIED
    set_enum_entry(nodemap, "UserSetSelector", "UserSet1")
    assert execute_command(nodemap, "UserSetSave").is_done()


def test_user_set_round_trip(camera):
    nodemap = camera.nodemap
    nodemap.get_node("Width").set_value(800)
    set_enum_entry(nodemap, "UserSetSelector", "UserSet0")
    execute_command(nodemap, "UserSetSave")
    nodemap.get_node("Width").set_value(320)
    execute_command(nodemap, "UserSetLoad")
    assert nodemap.get_node("Width").get_value() == 800
    set_enum_entry(nodemap, "UserSetSelector", "Default")
    execute_command(nodemap, "UserSetLoad")
    assert nodemap.get_node("Width").get_value() == 1440


def test_get_features_tree(camera):
    tree = get_features(camera.nodemap, "Root")
    assert tree["DeviceControl"]["DeviceSerialNumber"] == "20000001"
    assert tree["ImageFormatControl"]["PixelFormat"] == "Mono8"
    assert tree["AcquisitionControl"]["TriggerSoftware"] == "TriggerSoftware"
    # chunk nodes are not available until an image carried chunk data
    assert tree["ChunkDataControl"]["ChunkFrameID"] is None
    assert get_features(camera.nodemap, "NoSuchNode") is None
