"""
Behaviour of the simulated camera the examples and the other tests rely on
"""

import time

import numpy
import pytest

from pygevcam import gev_address
from pygevcam.api import InitCamera, OpenSystem, get_system
from pygevcam.api.device import ImageStatus
from pygevcam.api.errors import CameraError, ErrorCode
from pygevcam.api.events import DeviceEventHandler, ImageEventHandler
from pygevcam.api.nodes import execute_command, set_enum_entry, set_value_checked
from pygevcam.api.sim import SimSystem
from pygevcam.examples import inference, logic_block, sequencer
from pygevcam.utils import deep_update


def grab(cam, count=1, timeout_ms=2000):
    cam.begin_acquisition()
    try:
        images = []
        for _ in range(count):
            image = cam.get_next_image(timeout_ms)
            images.append(image)
            image.release()
        return images
    finally:
        cam.end_acquisition()


def test_system_is_a_refcounted_singleton(config):
    first = get_system("sim", config)
    second = get_system("sim", config)
    assert first is second
    first.release_instance()
    assert second.is_in_use()
    second.release_instance()
    assert not second.is_in_use()
    with pytest.raises(CameraError) as excinfo:
        second.release_instance()
    assert excinfo.value.code == ErrorCode.INVALID_HANDLE


def test_unknown_backend(config):
    with pytest.raises(CameraError) as excinfo:
        get_system("gentl", config)
    assert excinfo.value.code == ErrorCode.INVALID_PARAMETER


def test_context_managers(config):
    with OpenSystem("sim", config) as system:
        cam = system.get_cameras()[0]
        with InitCamera(cam):
            assert cam.is_initialized()
        assert not cam.is_initialized()
    assert not system.is_in_use()


def test_camera_list(two_camera_config):
    system = get_system("sim", two_camera_config)
    cam_list = system.get_cameras()
    assert [cam.serial for cam in cam_list] == ["20000001", "20000002"]
    assert cam_list.get_by_serial(20000002) is cam_list[1]
    assert cam_list.get_by_serial("1") is None
    with pytest.raises(CameraError) as excinfo:
        cam_list.get_by_index(2)
    assert excinfo.value.code == ErrorCode.INVALID_INDEX
    mac = cam_list[1].tl_device_nodemap.get_node("GevDeviceMACAddress").get_value()
    assert gev_address.mac_address(mac) == "00:11:1C:00:00:02"
    interface = system.get_interfaces()[0]
    assert interface.is_gige()
    assert len(interface.get_cameras()) == 2


def test_grab_images(camera):
    set_value_checked(camera.nodemap, "Width", 320)
    set_value_checked(camera.nodemap, "Height", 240)
    images = grab(camera, 3)
    assert [image.frame_id for image in images] == [0, 1, 2]
    for image in images:
        assert image.data.shape == (240, 320)
        assert image.data.dtype == numpy.uint8
        assert not image.is_incomplete()
        assert image.released
    assert not camera.is_streaming()


def test_pixel_formats(camera):
    set_enum_entry(camera.nodemap, "PixelFormat", "Mono16")
    image = grab(camera)[0]
    assert image.pixel_format == "Mono16"
    assert image.data.dtype == numpy.uint16
    assert image.convert("Mono8").data.dtype == numpy.uint8

    set_enum_entry(camera.nodemap, "PixelFormat", "BayerRG8")
    image = grab(camera)[0]
    assert image.convert("BGR8").data.shape == (1080, 1440, 3)


def test_acquisition_errors(camera):
    with pytest.raises(CameraError) as excinfo:
        camera.get_next_image(100)
    assert excinfo.value.code == ErrorCode.NOT_INITIALIZED
    camera.begin_acquisition()
    try:
        with pytest.raises(CameraError) as excinfo:
            camera.begin_acquisition()
        assert excinfo.value.code == ErrorCode.RESOURCE_IN_USE
        # image format nodes are locked while streaming
        with pytest.raises(CameraError):
            set_value_checked(camera.nodemap, "Width", 320)
    finally:
        camera.end_acquisition()


def test_single_frame_mode_times_out_after_one_image(camera):
    set_enum_entry(camera.nodemap, "AcquisitionMode", "SingleFrame")
    camera.begin_acquisition()
    try:
        camera.get_next_image(2000).release()
        with pytest.raises(CameraError) as excinfo:
            camera.get_next_image(200)
        assert excinfo.value.code == ErrorCode.TIMEOUT
    finally:
        camera.end_acquisition()


def test_software_trigger(camera):
    nodemap = camera.nodemap
    set_enum_entry(nodemap, "TriggerSource", "Software")
    set_enum_entry(nodemap, "TriggerMode", "On")
    camera.begin_acquisition()
    try:
        with pytest.raises(CameraError) as excinfo:
            camera.get_next_image(200)
        assert excinfo.value.code == ErrorCode.TIMEOUT
        execute_command(nodemap, "TriggerSoftware")
        image = camera.get_next_image(2000)
        assert image.frame_id == 0
        image.release()
    finally:
        camera.end_acquisition()


def test_logic_block_trigger(camera):
    nodemap = camera.nodemap
    logic_block.configure_logic_block(nodemap)
    logic_block.configure_trigger(nodemap)
    camera.begin_acquisition()
    try:
        assert logic_block.grab_two_images(nodemap)
        first = camera.get_next_image(2000)
        second = camera.get_next_image(2000)
        assert second.frame_id == first.frame_id + 1
        with pytest.raises(CameraError):
            camera.get_next_image(200)
    finally:
        camera.end_acquisition()


def test_chunk_data(camera):
    nodemap = camera.nodemap
    # one frame only, so the node map chunks belong to the grabbed image
    set_enum_entry(nodemap, "AcquisitionMode", "SingleFrame")
    set_value_checked(nodemap, "ChunkModeActive", True)
    for name in ("FrameID", "Width", "ExposureTime"):
        set_enum_entry(nodemap, "ChunkSelector", name)
        set_value_checked(nodemap, "ChunkEnable", True)
    image = grab(camera)[0]
    assert image.chunk_data.get_int("FrameID") == image.frame_id
    assert image.chunk_data.get_int("Width") == image.width
    assert image.chunk_data.get_float("ExposureTime") == nodemap.get_node("ExposureTime").get_value()
    with pytest.raises(CameraError) as excinfo:
        image.chunk_data.get_int("Gain")
    assert excinfo.value.code == ErrorCode.PARSING_CHUNK_DATA
    # the last image's chunks are readable through the node map
    assert nodemap.get_node("ChunkFrameID").get_value() == image.frame_id


def test_lookup_table(camera):
    nodemap = camera.nodemap
    index = nodemap.get_node("LUTIndex")
    value = nodemap.get_node("LUTValue")
    for i in range(4096):
        index.set_value(i)
        value.set_value(0)
    set_value_checked(nodemap, "LUTEnable", True)
    set_value_checked(nodemap, "BlackLevel", 10.0)
    image = grab(camera)[0]
    assert not image.data.any()


def test_sequencer_cycles_through_states(camera):
    nodemap = camera.nodemap
    sequencer.configure_sequencer_part_one(nodemap)
    states, _ = sequencer.sequence_values(nodemap)
    for number, state in enumerate(states):
        sequencer.set_single_state(nodemap, number, *state)
    sequencer.configure_sequencer_part_two(nodemap)

    images = grab(camera, 6)
    sizes = [(image.width, image.height) for image in images]
    expected = [(width, height) for width, height, _, _ in states]
    assert sizes == expected + expected[:1]


def test_sequencer_configuration_invalid_without_saved_sets(camera):
    nodemap = camera.nodemap
    set_enum_entry(nodemap, "SequencerConfigurationMode", "On")
    set_enum_entry(nodemap, "SequencerConfigurationMode", "Off")
    set_enum_entry(nodemap, "SequencerMode", "On")
    assert nodemap.get_node("SequencerConfigurationValid").to_string() == "No"


class CountingImageHandler(ImageEventHandler):
    def __init__(self):
        self.frame_ids = []

    def on_image_event(self, image):
        self.frame_ids.append(image.frame_id)


class RecordingDeviceHandler(DeviceEventHandler):
    def __init__(self):
        super().__init__()
        self.events = []

    def on_device_event(self, event_name):
        self.events.append((event_name, self.get_device_event_id()))


def test_image_events_bypass_get_next_image(camera):
    handler = CountingImageHandler()
    camera.register_image_event_handler(handler)
    camera.begin_acquisition()
    try:
        with pytest.raises(CameraError):
            camera.get_next_image(300)
    finally:
        camera.end_acquisition()
    camera.unregister_image_event_handler(handler)
    assert handler.frame_ids
    assert handler.frame_ids == sorted(handler.frame_ids)
    with pytest.raises(CameraError):
        camera.unregister_image_event_handler(handler)


def test_device_events(camera):
    nodemap = camera.nodemap
    for name in ("ExposureStart", "ExposureEnd"):
        set_enum_entry(nodemap, "EventSelector", name)
        set_enum_entry(nodemap, "EventNotification", "On")
    every = RecordingDeviceHandler()
    specific = RecordingDeviceHandler()
    camera.register_device_event_handler(every)
    camera.register_device_event_handler(specific, "EventExposureEnd")
    grab(camera, 2)
    camera.unregister_device_event_handler(every)
    camera.unregister_device_event_handler(specific)

    assert every.events[:2] == [("EventExposureStart", 0x9C41), ("EventExposureEnd", 0x9C42)]
    assert all(event == ("EventExposureEnd", 0x9C42) for event in specific.events)
    assert len(specific.events) >= 2
    with pytest.raises(CameraError):
        camera.unregister_device_event_handler(every)


def test_incomplete_images(config):
    config = deep_update(config, {"sim": {"cameras": [{"incomplete_every": 2}]}})
    system = get_system("sim", config)
    cam = system.get_cameras()[0]
    with InitCamera(cam):
        images = grab(cam, 2)
    assert not images[0].is_incomplete()
    assert images[1].is_incomplete()
    assert images[1].status == ImageStatus.MISSING_PACKETS
    assert images[1].get_status_description() == "MISSING_PACKETS"


def test_newest_only_buffer_handling(camera):
    set_enum_entry(camera.tl_stream_nodemap, "StreamBufferHandlingMode", "NewestOnly")
    camera.begin_acquisition()
    try:
        first = camera.get_next_image(2000)
        first.release()
        # frames delivered while nobody waits replace each other
        time.sleep(0.2)
        second = camera.get_next_image(2000)
        assert second.frame_id > first.frame_id + 1
        second.release()
    finally:
        camera.end_acquisition()


def test_unplug_invalidates_camera(system):
    cam = system.get_cameras()[0]
    cam.init()
    system.unplug(cam.serial)
    assert system.get_cameras() == []
    assert not cam.is_valid()
    with pytest.raises(CameraError) as excinfo:
        cam.init()
    assert excinfo.value.code == ErrorCode.INVALID_HANDLE

    system.plug(cam.serial)
    again = system.get_cameras()[0]
    assert again.is_valid()
    assert not again.is_initialized()


def test_power_cycle_loads_default_user_set(system):
    cam = system.get_cameras()[0]
    with InitCamera(cam):
        nodemap = cam.nodemap
        set_value_checked(nodemap, "Width", 640)
        set_enum_entry(nodemap, "UserSetSelector", "UserSet1")
        execute_command(nodemap, "UserSetSave")
        set_enum_entry(nodemap, "UserSetDefault", "UserSet1")
        set_value_checked(nodemap, "Width", 320)
    system.unplug(cam.serial)
    system.get_cameras()
    system.plug(cam.serial)
    cam = system.get_cameras()[0]
    with InitCamera(cam):
        assert cam.nodemap.get_node("Width").get_value() == 640


def test_file_access_flash_and_ddr(camera):
    nodemap = camera.nodemap
    assert inference.upload_file_to_camera(nodemap, "InferenceNetwork", b"n"*3000, inference.FLASH)
    assert inference.upload_file_to_camera(nodemap, "InjectedImage", b"i"*1030, inference.DDR)
    assert camera.flash["InferenceNetwork"] == bytearray(b"n"*3000)
    assert camera.flash["InjectedImage"] == bytearray(b"i"*1030)
    set_enum_entry(nodemap, "FileSelector", "InferenceNetwork")
    assert nodemap.get_node("FileSize").get_value() == 3000

    # DDR files do not survive a power cycle
    system = camera.system
    camera.deinit()
    system.unplug(camera.serial)
    system.get_cameras()
    system.plug(camera.serial)
    cam = system.get_cameras()[0]
    assert "InferenceNetwork" in cam.flash
    assert "InjectedImage" not in cam.flash


def test_wrong_subnet_and_auto_force_ip(config):
    config = deep_update(config, {"sim": {"cameras": [{"ip": "10.0.0.5", "wrong_subnet": True}]}})
    system = get_system("sim", config)
    cam = system.get_cameras()[0]
    with pytest.raises(CameraError) as excinfo:
        cam.init()
    assert excinfo.value.code == ErrorCode.INVALID_ADDRESS

    interface = system.get_interfaces()[0]
    interface.tl_nodemap.get_node("DeviceSelector").set_value(0)
    interface.tl_nodemap.get_node("GevDeviceAutoForceIP").execute()
    ip = cam.tl_device_nodemap.get_node("GevDeviceIPAddress").get_value()
    assert gev_address.dotted_address(ip) == "192.168.0.100"
    with InitCamera(cam):
        assert cam.is_initialized()


def test_library_version(system):
    version = system.get_library_version()
    assert version.major == 2024
    assert isinstance(system, SimSystem)
