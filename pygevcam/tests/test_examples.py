"""
Every example run end to end against the simulated camera
"""

import sys
import threading

import numpy
import pytest
import tomli

from pygevcam import bin as gev_bin
from pygevcam.api import get_system
from pygevcam.api.errors import CameraError, ErrorCode
from pygevcam.api.nodes import NodeMap
from pygevcam.examples import EXAMPLES, get_example
from pygevcam.examples import common, exception_handling, inference, multiple_camera_recovery, nodemap_callback, nodemap_info
from pygevcam.utils import deep_update

SERIAL = "20000001"


def saved_images(output_dir, prefix):
    return sorted(path.name for path in output_dir.glob(f"{prefix}-*.jpg"))


def test_get_example():
    assert len(EXAMPLES) == 21
    assert get_example("acquisition").main
    with pytest.raises(KeyError):
        get_example("common")


@pytest.mark.parametrize("name, prefix, count", [
    ("acquisition", "Acquisition", 3),
    ("exposure", "Exposure", 5),
    ("image_format", "ImageFormatControl", 3),
    ("lookup_table", "LookupTable", 3),
    ("chunk_data", "ChunkData", 3),
    ("sequencer", "Sequencer", 3),
    ("image_events", "ImageEvents", 3),
    ("device_events", "DeviceEvents", 3),
    ("logic_block", "LogicBlock", 4),
])
def test_image_examples(name, prefix, count, config, tmp_path):
    assert get_example(name).main(config) == 0
    assert saved_images(tmp_path, prefix) == [f"{prefix}-{SERIAL}-{i}.jpg" for i in range(count)]


@pytest.mark.parametrize("trigger_type", ["software", "hardware"])
def test_trigger(trigger_type, config, tmp_path, capsys):
    config = deep_update(config, {"trigger": {"type": trigger_type}})
    assert get_example("trigger").main(config) == 0
    assert len(saved_images(tmp_path, "Trigger")) == 3
    assert f"{trigger_type.capitalize()} trigger chosen..." in capsys.readouterr().out


def test_trigger_unknown_type(config):
    config = deep_update(config, {"trigger": {"type": "telepathic"}})
    assert get_example("trigger").main(config) == -1


@pytest.mark.parametrize("display", ["image", "nodemap"])
def test_chunk_data_display(display, config, capsys):
    config = deep_update(config, {"chunk_data": {"display": display}})
    assert get_example("chunk_data").main(config) == 0
    out = capsys.readouterr().out
    if display == "image":
        assert "\tFrame ID: 0" in out
    else:
        assert "\tChunk Frame ID: " in out


@pytest.mark.parametrize("registration", ["generic", "specific"])
def test_device_event_registration(registration, config, capsys):
    config = deep_update(config, {"device_events": {"registration": registration}})
    assert get_example("device_events").main(config) == 0
    out = capsys.readouterr().out
    assert "Device event EventExposureEnd with ID 40002 number 1..." in out
    assert ("not EventExposureEnd; ignoring" in out) == (registration == "generic")


def test_not_enough_cameras(config, capsys):
    config = deep_update(config, {"sim": {"cameras": []}})
    assert get_example("acquisition").main(config) == -1
    assert "Not enough cameras!" in capsys.readouterr().out


def test_unwritable_output_dir(config, tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    config = deep_update(config, {"output_dir": str(blocker / "images")})
    assert get_example("acquisition").main(config) == -1


def test_configuration_table_is_applied(config, tmp_path):
    config = deep_update(config, {"configuration": {"Width": 320, "Height": 240, "NoSuchNode": 1}})
    assert get_example("acquisition").main(config) == 0
    assert saved_images(tmp_path, "Acquisition")


@pytest.mark.parametrize("read_type", ["value", "individual"])
def test_nodemap_info(read_type, config, capsys):
    config = deep_update(config, {"nodemap_info": {"read_type": read_type}})
    assert get_example("nodemap_info").main(config) == 0
    out = capsys.readouterr().out
    for title in ("TRANSPORT LAYER DEVICE NODEMAP", "TRANSPORT LAYER STREAM NODEMAP", "GENICAM NODEMAP"):
        assert f"*** PRINTING {title} ***" in out
    assert "        Device Serial Number: 20000001" in out
    assert "        Pixel Format: Mono8" in out


def test_nodemap_info_dump(config, tmp_path):
    config = deep_update(config, {"nodemap_info": {"dump": str(tmp_path / "nodemap.toml")}})
    assert get_example("nodemap_info").main(config) == 0
    with open(tmp_path / f"nodemap-{SERIAL}.toml", "rb") as tf:
        tree = tomli.load(tf)
    assert tree["DeviceControl"]["DeviceSerialNumber"] == SERIAL
    assert tree["ImageFormatControl"]["Width"] == 1440
    assert "ChunkFrameID" not in tree["ChunkDataControl"]


def test_nodemap_info_helpers(tmp_path):
    assert nodemap_info.dump_path(tmp_path / "tree.yaml", "123") == tmp_path / "tree-123.yaml"
    assert nodemap_info.dump_path("tree.json", "").name == "tree.json"
    assert nodemap_info.prune({"a": None, "b": {"c": None, "d": 1}}) == {"b": {"d": 1}}
    assert nodemap_info.truncate("x"*40) == "x"*35 + "..."


def test_gentl_info(config, capsys):
    assert get_example("gentl_info").main(config) == 0
    out = capsys.readouterr().out
    assert "Interface display name: Simulated GigE Interface 0" in out
    assert f"Device serial number: {SERIAL}" in out
    assert "Stream type: GigEVision" in out
    assert "Height: 1080" in out
    assert "Host adapter" not in out


def test_nodemap_callback(config, capsys):
    assert get_example("nodemap_callback").main(config) == 0
    out = capsys.readouterr().out
    assert "Look! Height changed to 1080..." in out
    assert "Look now! Gain changed to 47.990000..." in out


def test_nodemap_callback_deregisters_after_failure(camera, config, monkeypatch, capsys):
    def fail(nodemap):
        raise CameraError("Unable to change height", ErrorCode.ACCESS_DENIED)

    monkeypatch.setattr(nodemap_callback, "change_height_and_gain", fail)
    assert not nodemap_callback.run_single_camera(camera, config)
    out = capsys.readouterr().out
    assert "Height callback deregistered..." in out
    assert "Gain callback deregistered..." in out
    camera.nodemap.get_node("Height").set_value(480)
    assert "Look! Height" not in capsys.readouterr().out


def test_missing_device_information_is_not_a_failure(capsys):
    assert common.print_device_info(NodeMap())
    assert "Device control information not available." in capsys.readouterr().out


def test_save_to_video(config, tmp_path):
    assert get_example("save_to_video").main(config) == 0
    video = tmp_path / f"SaveToAvi-MJPG-{SERIAL}.avi"
    assert video.stat().st_size > 0


def test_save_to_video_unknown_type(config):
    config = deep_update(config, {"video": {"type": "flipbook"}})
    assert get_example("save_to_video").main(config) == -1


@pytest.mark.parametrize("kind, expected", [
    ("camera", "Camera exception caught."),
    ("standard", "Standard exception caught."),
    ("standard_cast", "will be checked for a camera exception"),
])
def test_exception_handling(kind, expected, config, capsys):
    config = deep_update(config, {"exception_handling": {"type": kind}})
    assert exception_handling.main(config) == 0
    out = capsys.readouterr().out
    assert expected in out
    if kind != "standard":
        assert "(NOT_INITIALIZED) raised in function nodemap" in out


def test_exception_handling_releases_system(config):
    assert exception_handling.run(config, "camera") == 0
    system = get_system("sim", config)
    # a fresh instance, the one used by the example was released
    assert system.get_cameras()[0].is_valid()
    system.release_instance()


def test_enumeration_events(config, capsys):
    assert get_example("enumeration_events").main(config) == 0
    out = capsys.readouterr().out
    assert "Interface event handler registered on the system..." in out
    assert "Event handler registered to interface 'sim0'..." in out
    assert "Event handler unregistered from interfaces..." in out


def test_enumeration_events_report_changes(config, capsys):
    config = deep_update(config, {"enumeration_events": {"duration": 1.5}})
    system = get_system("sim", config)
    timers = [threading.Timer(0.3, system.unplug, [SERIAL]), threading.Timer(0.8, system.plug, [SERIAL])]
    for timer in timers:
        timer.start()
    assert get_example("enumeration_events").run(system, config) == 0
    for timer in timers:
        timer.join()
    out = capsys.readouterr().out
    assert f"Device {SERIAL} was removed from interface 'sim0'." in out
    assert f"Device {SERIAL} has arrived on interface 'sim0'." in out
    assert "There are 0 devices on the system." in out
    assert "There is 1 device on the system." in out


def test_logging_events(config, capsys):
    assert get_example("logging_events").main(config) == 0
    out = capsys.readouterr().out
    assert "--------Log Event Received----------" in out
    assert "Priority Name: DEBUG" in out


def test_logging_events_unknown_level(config):
    config = deep_update(config, {"logging": {"level": "CHATTY"}})
    assert get_example("logging_events").main(config) == -1


@pytest.fixture
def inference_files(tmp_path):
    network = tmp_path / "network.bin"
    network.write_bytes(bytes(range(256))*10)
    injected = tmp_path / "injected.raw"
    injected.write_bytes(bytes(range(200))*7)
    return network, injected


@pytest.mark.parametrize("network_type, persistence", [
    ("detection", "flash"),
    ("classification", "ddr"),
])
def test_inference(network_type, persistence, inference_files, config, tmp_path, capsys):
    network, injected = inference_files
    config = deep_update(config, {"inference": {
        "network_type": network_type,
        "persistence": persistence,
        "network_file": str(network),
        "injected_image_file": str(injected),
    }})
    assert get_example("inference").main(config) == 0
    out = capsys.readouterr().out
    assert "\tInference Frame ID: 0" in out
    if network_type == "detection":
        assert "\tBox[1]: Class 0 (background) - 50.4% - Rectangle (X=180, Y=135, W=360, H=270)" in out
        assert "\tBox[2]: Class 1 (aeroplane) - 50.4% - Circle (X=360, Y=270, R=67)" in out
    else:
        assert "\tInference Confidence:" in out
    assert len(saved_images(tmp_path, "Inference")) == 3


@pytest.mark.parametrize("pixel, expected", [
    (255, ["\tBox[1]: Class 3 (bird) - 55% - Rectangle (X=180, Y=135, W=360, H=270)",
           "\tBox[2]: Class 4 (boat) - 55% - Circle (X=360, Y=270, R=67)"]),
    (0, ["\tNo bounding box"]),
])
def test_inference_bounding_boxes(pixel, expected, inference_files, config, capsys):
    network, injected = inference_files
    injected.write_bytes(bytes([pixel])*(720*540))
    config = deep_update(config, {"inference": {
        "network_type": "detection",
        "network_file": str(network),
        "injected_image_file": str(injected),
    }})
    assert get_example("inference").main(config) == 0
    out = capsys.readouterr().out
    for line in expected:
        assert line in out
    if pixel == 0:
        assert "\tBox[" not in out


def test_decode_bounding_boxes():
    payload = numpy.array([3,
                           2, 15, 875, 10, 20, 110, 220, 45,
                           7, 0, 500, 1, 2, 3, 4, 5,
                           0, 99, 1000, 0, 0, 8, 6, 0], dtype="<i2").tobytes()
    boxes = inference.decode_bounding_boxes(payload)
    assert [box.box_type for box in boxes] == [2, 7, 0]
    assert inference.format_bounding_box(0, boxes[0]) == \
        "\tBox[1]: Class 15 (person) - 87.5% - Rotated Rectangle (X1=10, Y1=20, X2=110, Y2=220, angle=45)"
    assert inference.format_bounding_box(1, boxes[1]) == \
        "\tBox[2]: Class 0 (background) - 50% - Unknown bounding box type (not supported)"
    assert inference.format_bounding_box(2, boxes[2]) == \
        "\tBox[3]: Class 99 (N/A) - 100% - Rectangle (X=0, Y=0, W=8, H=6)"
    # a count larger than the records present
    assert len(inference.decode_bounding_boxes(payload[:2 + 16*2 + 3])) == 2
    assert inference.decode_bounding_boxes(b"") == []
    assert inference.decode_bounding_boxes(numpy.zeros(1, dtype="<i2").tobytes()) == []


def test_inference_missing_network_file(config, tmp_path):
    config = deep_update(config, {"inference": {"network_file": str(tmp_path / "missing")}})
    assert get_example("inference").main(config) == -1


def test_inference_not_supported(config):
    config = deep_update(config, {"sim": {"cameras": [{"inference": False}]}})
    assert get_example("inference").main(config) == -1


def test_file_chunks_pad_the_last_buffer():
    chunks = list(inference.file_chunks(b"a"*10, 4))
    assert chunks == [(b"aaaa", 4), (b"aaaa", 4), (b"aa\xff\xff", 2)]
    assert list(inference.file_chunks(b"a"*8, 4)) == [(b"aaaa", 4), (b"aaaa", 4)]
    assert inference.label(inference.LABEL_CLASSIFICATION, 2) == "roses"
    assert inference.label(inference.LABEL_CLASSIFICATION, 9) == "N/A"


def test_upload_empty_file(camera):
    assert not inference.upload_file_to_camera(camera.nodemap, "InferenceNetwork", b"")


@pytest.mark.parametrize("threaded, prefix", [
    (False, "AcquisitionMultipleCamera"),
    (True, "AcquisitionMultipleThread"),
])
def test_multiple_camera(threaded, prefix, two_camera_config, tmp_path):
    config = deep_update(two_camera_config, {"multiple_camera": {"threaded": threaded}})
    assert get_example("multiple_camera").main(config) == 0
    for serial in ("20000001", "20000002"):
        assert saved_images(tmp_path, f"{prefix}-{serial}") == [f"{prefix}-{serial}-{i}.jpg" for i in range(3)]


def test_multiple_camera_recovery(config, capsys):
    config = deep_update(config, {"multiple_camera_recovery": {"duration": 2.0}})
    system = get_system("sim", config)
    timers = [threading.Timer(0.4, system.unplug, [SERIAL]), threading.Timer(0.9, system.plug, [SERIAL])]
    for timer in timers:
        timer.start()
    assert multiple_camera_recovery.run(system, config) == 0
    for timer in timers:
        timer.join()

    info = multiple_camera_recovery.camera_grab_info[SERIAL]
    assert info.num_removals == 1
    assert info.num_images_grabbed > 0
    out = capsys.readouterr().out
    assert f"*** STARTING RECOVERY EXAMPLE FOR {SERIAL} ***" in out
    assert f"{SERIAL} Device Removal Detected" in out
    assert f"*** RESUMING RECOVERY EXAMPLE FOR {SERIAL} ***" in out
    assert "Camera Removals:" in out


def test_gev_example_command_line(config, tmp_path, monkeypatch, capsys):
    config_file = tmp_path / "settings.toml"
    config_file.write_text(f'interactive = false\nnum_images = 1\noutput_dir = "{tmp_path.as_posix()}"\n')
    monkeypatch.setattr(sys, "argv", ["gev_example", "acquisition", str(config_file), "--sim"])
    with pytest.raises(SystemExit) as excinfo:
        gev_bin.example()
    assert excinfo.value.code == 0
    assert saved_images(tmp_path, "Acquisition") == [f"Acquisition-{SERIAL}-0.jpg"]


def test_gev_example_usage(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["gev_example", "not_an_example"])
    with pytest.raises(SystemExit) as excinfo:
        gev_bin.example()
    assert excinfo.value.code == -1
    out = capsys.readouterr().out
    assert "Usage: gev_example" in out
    assert "    multiple_camera_recovery" in out


def test_gev_config_command_line(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["gev_config", "--sim", "-s", SERIAL])
    with pytest.raises(SystemExit) as excinfo:
        gev_bin.gige_config()
    assert excinfo.value.code == 0
    assert f"DeviceSerialNumber : {SERIAL}" in capsys.readouterr().out
