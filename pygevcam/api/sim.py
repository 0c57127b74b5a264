"""
A simulated GenICam camera

Runs entirely in process and exposes SFNC named node maps, so every example
can run (and be tested) without hardware. Selector indexed nodes store one
value per combination of their selectors, frames are synthetic numpy arrays
rendered from the current node values.
"""

import queue
import re
import time

import numpy

from pygevcam.logger import logger
from pygevcam import __version__
from pygevcam import gev_address
from pygevcam.api.errors import CameraError, ErrorCode
from pygevcam.api.nodes import AccessMode, Node, NodeMap, NodeType
from pygevcam.api.device import (CameraBase, ChunkData, Image, ImageStatus, InterfaceBase,
                                 LibraryVersion, SystemBase)
from pygevcam.utils.cb_thread import CallbackThread

DEFAULT_INTERFACE = {
    "id": "sim0",
    "display_name": "Simulated GigE Interface 0",
    "type": "GigEVision",
    "address": "192.168.0.1",
    "mask": "255.255.255.0",
}

DEFAULT_CAMERA = {
    "serial": "20000001",
    "interface": "sim0",
    "vendor": "pygevcam",
    "model": "Sim GEV Camera",
    "type": "GigEVision",
    "ip": "192.168.0.10",
    "mask": "255.255.255.0",
    "gateway": "0.0.0.0",
    "mac": "00:11:1C:00:00:01",
    "sensor_width": 1440,
    "sensor_height": 1080,
    "frame_rate": 50.0,
    "inference": True,
    "wrong_subnet": False,
    "incomplete_every": 0,
}

EVENT_IDS = {
    "ExposureStart": 0x9C41,
    "ExposureEnd": 0x9C42,
}

CHUNK_NAMES = ["FrameID", "OffsetX", "OffsetY", "Width", "Height", "ExposureTime", "Gain",
               "BlackLevel", "PixelFormat", "Timestamp", "SequencerSetActive"]
INFERENCE_CHUNK_NAMES = ["InferenceFrameId", "InferenceResult", "InferenceConfidence",
                         "InferenceBoundingBoxResult"]
FLOAT_CHUNKS = ("ExposureTime", "Gain", "BlackLevel", "InferenceConfidence")

FILE_NAMES = ["UserSet0", "UserSet1", "InferenceNetwork", "InjectedImage"]

_camel = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def display_name(name):
    return _camel.sub(" ", name)


# ---- node types ----

class SimNode(Node):
    """A node whose value lives in the owning SimNodeMap

    access may be an AccessMode or a function returning one, getter replaces
    the stored value with a computed one, on_write(value, previous) runs after
    every successful write.
    """
    def __init__(self, nodemap, name, default=None, access=AccessMode.RW, selectors=(),
                 getter=None, on_write=None, saved=True, **kwargs):
        kwargs.setdefault("display_name", display_name(name))
        super().__init__(name, **kwargs)
        self.nodemap = nodemap
        self.default = default
        self.access = access
        self.selectors = tuple(selectors)
        self.getter = getter
        self.on_write = on_write
        self.saved = saved

    def get_access_mode(self):
        return self.access() if callable(self.access) else self.access

    def _key(self):
        return (self.name,) + tuple(self.nodemap.raw(sel) for sel in self.selectors)

    def _raw(self):
        if self.getter is not None:
            return self.getter()
        return self.nodemap.lookup(self._key())

    def _read(self):
        if not self.is_readable():
            raise CameraError(f"{self.name} is not readable", ErrorCode.ACCESS_DENIED)
        return self._raw()

    def _write(self, value):
        if not self.is_writable():
            raise CameraError(f"{self.name} is not writable", ErrorCode.ACCESS_DENIED)
        key = self._key()
        previous = self.nodemap.lookup(key)
        self.nodemap.values[key] = value
        if self.on_write is not None:
            self.on_write(value, previous)
        self.notify()


def _resolve(value):
    return value() if callable(value) else value


class SimInteger(SimNode):
    node_type = NodeType.Integer

    def __init__(self, nodemap, name, default=0, min=0, max=2**31-1, inc=1, unit="", **kwargs):
        super().__init__(nodemap, name, default, **kwargs)
        self._min = min
        self._max = max
        self._inc = inc
        self.unit = unit

    def get_min(self):
        return _resolve(self._min)

    def get_max(self):
        return _resolve(self._max)

    def get_inc(self):
        return _resolve(self._inc)

    def get_value(self):
        return int(self._read())

    def set_value(self, value):
        value = int(value)
        low, high, inc = self.get_min(), self.get_max(), self.get_inc()
        if value < low or value > high:
            raise CameraError(f"{self.name} value {value} out of range [{low}, {high}]",
                              ErrorCode.INVALID_PARAMETER)
        if inc and (value - low) % inc:
            raise CameraError(f"{self.name} value {value} is not a multiple of the increment {inc}",
                              ErrorCode.INVALID_PARAMETER)
        self._write(value)

    def from_string(self, value):
        self.set_value(int(value, 0))


class SimFloat(SimNode):
    node_type = NodeType.Float

    def __init__(self, nodemap, name, default=0.0, min=0.0, max=1e9, unit="", **kwargs):
        super().__init__(nodemap, name, default, **kwargs)
        self._min = min
        self._max = max
        self.unit = unit

    def get_min(self):
        return float(_resolve(self._min))

    def get_max(self):
        return float(_resolve(self._max))

    def get_inc(self):
        return None

    def get_value(self):
        return float(self._read())

    def set_value(self, value):
        value = float(value)
        low, high = self.get_min(), self.get_max()
        if value < low or value > high:
            raise CameraError(f"{self.name} value {value} out of range [{low}, {high}]",
                              ErrorCode.INVALID_PARAMETER)
        self._write(value)

    def from_string(self, value):
        self.set_value(float(value))


class SimBoolean(SimNode):
    node_type = NodeType.Boolean

    def get_value(self):
        return bool(self._read())

    def set_value(self, value):
        self._write(bool(value))

    def from_string(self, value):
        self.set_value(value.strip().lower() in ("1", "true", "on", "yes"))


class SimString(SimNode):
    node_type = NodeType.String

    def __init__(self, nodemap, name, default="", max_length=64, **kwargs):
        super().__init__(nodemap, name, default, **kwargs)
        self.max_length = max_length

    def get_value(self):
        return str(self._read())

    def set_value(self, value):
        value = str(value)
        if len(value) > self.max_length:
            raise CameraError(f"{self.name} is limited to {self.max_length} characters",
                              ErrorCode.INVALID_PARAMETER)
        self._write(value)

    def from_string(self, value):
        self.set_value(value)


class SimEnumEntry(Node):
    node_type = NodeType.EnumEntry

    def __init__(self, symbolic, value, access=AccessMode.RO):
        super().__init__(symbolic, display_name=display_name(symbolic))
        self.symbolic = symbolic
        self.value = value
        self.access = access

    def get_access_mode(self):
        return self.access() if callable(self.access) else self.access

    def get_value(self):
        return self.value

    def to_string(self):
        return self.symbolic


class SimEnumeration(SimNode):
    node_type = NodeType.Enumeration

    def __init__(self, nodemap, name, entries, default=None, **kwargs):
        self.entries = []
        for value, entry in enumerate(entries):
            if isinstance(entry, str):
                entry = SimEnumEntry(entry, value)
            else:
                entry = SimEnumEntry(entry[0], value, entry[1])
            self.entries.append(entry)
        self._by_name = {entry.symbolic:entry for entry in self.entries}
        default = self._by_name[default].value if default is not None else 0
        super().__init__(nodemap, name, default, **kwargs)

    def get_entries(self):
        return list(self.entries)

    def get_entry_by_name(self, symbolic):
        return self._by_name.get(symbolic)

    def entry_for_value(self, value):
        for entry in self.entries:
            if entry.value == value:
                return entry
        return None

    def get_current_entry(self):
        return self.entry_for_value(self._read())

    def get_int_value(self):
        return int(self._read())

    def set_int_value(self, value):
        entry = self.entry_for_value(value)
        if entry is None or not entry.is_readable():
            raise CameraError(f"{self.name} has no available entry with value {value}",
                              ErrorCode.INVALID_PARAMETER)
        self._write(entry.value)

    def get_value(self):
        return self.get_int_value()

    def set_value(self, value):
        if isinstance(value, str):
            self.from_string(value)
        else:
            self.set_int_value(value)

    def from_string(self, value):
        entry = self.get_entry_by_name(value)
        if entry is None:
            raise CameraError(f"{self.name} has no entry {value}", ErrorCode.INVALID_PARAMETER)
        self.set_int_value(entry.value)

    def to_string(self):
        return self.get_current_entry().symbolic


class SimCommand(SimNode):
    node_type = NodeType.Command

    def __init__(self, nodemap, name, action=None, **kwargs):
        kwargs.setdefault("access", AccessMode.WO)
        kwargs.setdefault("saved", False)
        super().__init__(nodemap, name, **kwargs)
        self.action = action

    def execute(self):
        if not self.is_writable():
            raise CameraError(f"{self.name} cannot be executed", ErrorCode.ACCESS_DENIED)
        if self.action is not None:
            self.action()
        self.notify()

    def is_done(self):
        return True


class SimRegister(SimNode):
    node_type = NodeType.Register

    def __init__(self, nodemap, name, length=1024, **kwargs):
        kwargs.setdefault("saved", False)
        super().__init__(nodemap, name, b"", **kwargs)
        self.length = length

    def get_length(self):
        return self.length

    def get(self):
        return bytes(self._read())

    def set(self, data):
        data = bytes(data)
        if len(data) > self.length:
            raise CameraError(f"{self.name} holds at most {self.length} bytes", ErrorCode.BUFFER_TOO_SMALL)
        self._write(data)

    def get_value(self):
        return self.get()

    def set_value(self, value):
        self.set(value)


class SimCategory(SimNode):
    node_type = NodeType.Category

    def __init__(self, nodemap, name, features=(), **kwargs):
        kwargs.setdefault("access", AccessMode.RO)
        super().__init__(nodemap, name, **kwargs)
        self.features = list(features)

    def get_features(self):
        nodes = (self.nodemap.get_node(name) for name in self.features)
        return [node for node in nodes if node is not None]


class SimNodeMap(NodeMap):
    """Node registry plus the value store the nodes read and write"""
    def __init__(self):
        super().__init__()
        self.values = {}
        self._category = None

    def lookup(self, key):
        if key in self.values:
            return self.values[key]
        default = self.get_node(key[0]).default
        return default(*key[1:]) if callable(default) else default

    def raw(self, name):
        return self.get_node(name)._raw()

    def peek(self, name, *selector_values):
        node = self.get_node(name)
        if node.getter is not None:
            return node.getter()
        return self.lookup((name,) + selector_values)

    def symbol(self, name, *selector_values):
        node = self.get_node(name)
        return node.entry_for_value(self.peek(name, *selector_values)).symbolic

    def entry_value(self, name, symbolic):
        return self.get_node(name).get_entry_by_name(symbolic).value

    def poke(self, name, value, *selector_values):
        """Store a value without access checks, as the device itself would"""
        self.values[(name,) + selector_values] = value

    def category(self, name, features=None):
        """Add a category, nodes added afterwards are filed under it"""
        node = self.add_node(SimCategory(self, name, features or []))
        if features is None:
            self._category = node
        return node

    def _add(self, node):
        self.add_node(node)
        if self._category is not None:
            self._category.features.append(node.name)
        return node

    def integer(self, name, default=0, **kwargs):
        return self._add(SimInteger(self, name, default, **kwargs))

    def float(self, name, default=0.0, **kwargs):
        return self._add(SimFloat(self, name, default, **kwargs))

    def boolean(self, name, default=False, **kwargs):
        return self._add(SimBoolean(self, name, default, **kwargs))

    def string(self, name, default="", **kwargs):
        return self._add(SimString(self, name, default, **kwargs))

    def enum(self, name, entries, default=None, **kwargs):
        return self._add(SimEnumeration(self, name, entries, default, **kwargs))

    def command(self, name, action=None, **kwargs):
        return self._add(SimCommand(self, name, action, **kwargs))

    def register(self, name, length=1024, **kwargs):
        return self._add(SimRegister(self, name, length, **kwargs))


def _ro(cond):
    return lambda: AccessMode.RW if cond() else AccessMode.RO


def _na(cond, mode=AccessMode.RW):
    return lambda: mode if cond() else AccessMode.NA


# ---- frames ----

def render_frame(width, height, offset_x, offset_y, frame_id, exposure_us, gain_db,
                 black_level, pixel_format, lut=None):
    """Synthetic 12 bit scene (a moving diagonal ramp) in the requested pixel format"""
    yy, xx = numpy.mgrid[offset_y:offset_y+height, offset_x:offset_x+width]
    ramp = ((xx + yy + 4*frame_id) % 256) / 255.0
    level = min(1.0, exposure_us / 20000.0 * 10**(gain_db/20.0))
    signal = numpy.clip(ramp*level*4095 + black_level*40.95, 0, 4095).astype(numpy.uint16)
    if lut is not None:
        signal = lut[signal].astype(numpy.uint16)

    if pixel_format == "Mono8":
        return (signal >> 4).astype(numpy.uint8)
    if pixel_format == "Mono12":
        return signal
    if pixel_format == "Mono16":
        return signal << 4
    if pixel_format == "BayerRG8":
        # R G / G B mosaic of a slightly warm scene
        gains = numpy.array([[1.0, 0.8], [0.8, 0.6]])
        mosaic = numpy.tile(gains, (height//2 + 1, width//2 + 1))[:height, :width]
        return ((signal >> 4) * mosaic).astype(numpy.uint8)
    raise CameraError(f"Pixel format {pixel_format} not supported", ErrorCode.INVALID_PARAMETER)


class SimFrameGrabber(CallbackThread):
    """Produces frames for one acquisition, free running or on trigger"""
    def __init__(self, cam):
        super().__init__(name=f"sim-grab-{cam.serial}")
        self.cam = cam
        self.next_frame = time.perf_counter()
        self.register(cam._deliver)

    def get_data(self):
        cam = self.cam
        if cam._acquisition_complete():
            self.stop_event.wait(0.05)
            return None
        if cam._triggered_by_event():
            try:
                cam._triggers.get(timeout=0.05)
            except queue.Empty:
                return None
        else:
            delay = self.next_frame - time.perf_counter()
            if delay > 0 and self.stop_event.wait(delay):
                return None
            self.next_frame = max(self.next_frame + 1/cam._frame_rate(), time.perf_counter())
        if self.stop_event.is_set():
            return None
        return cam._capture_frame()

    def stop(self):
        self.stop_cb_thread()


# ---- camera ----

class SimCamera(CameraBase):
    def __init__(self, system, config):
        self.config = config
        self.ip = gev_address.ipv4_to_int(config["ip"])
        self.mask = gev_address.ipv4_to_int(config["mask"])
        self.gateway = gev_address.ipv4_to_int(config["gateway"])
        self.mac = gev_address.mac_to_int(config["mac"])
        self.wrong_subnet = bool(config["wrong_subnet"])

        self.flash = {}
        self.ddr_files = set()
        self._open_file = None
        self.user_sets = {"Default": {}}
        self.sequencer_sets = {}
        self._last_chunk = ChunkData()

        self._frame_id = 0
        self._frames_this_acquisition = 0
        self._sequencer_state = 0
        self._images = queue.Queue()
        self._triggers = queue.Queue()
        self._grabber = None

        super().__init__(system, config["interface"], self._build_tl_device(),
                         self._build_tl_stream())
        self.genicam = self._build_genicam()

    def is_gige(self):
        return self.config["type"] == "GigEVision"

    # node maps

    def _build_tl_device(self):
        cfg = self.config
        nm = SimNodeMap()
        nm.category("Root", ["DeviceInformation", "DeviceControl"])
        nm.category("DeviceInformation")
        nm.string("DeviceID", cfg["serial"], access=AccessMode.RO)
        nm.string("DeviceSerialNumber", cfg["serial"], access=AccessMode.RO)
        nm.string("DeviceVendorName", cfg["vendor"], access=AccessMode.RO)
        nm.string("DeviceModelName", cfg["model"], access=AccessMode.RO)
        nm.enum("DeviceType", ["GigEVision", "USB3Vision"], cfg["type"], access=AccessMode.RO)
        nm.string("DeviceDisplayName", f"{cfg['vendor']} {cfg['model']}", access=AccessMode.RO)
        nm.string("DeviceVersion", __version__, access=AccessMode.RO)
        nm.enum("DeviceAccessStatus", ["Unknown", "ReadWrite", "ReadOnly", "NoAccess", "Busy",
                                       "OpenReadWrite", "OpenReadOnly"],
                getter=lambda: 5 if self.is_initialized() else 1, access=AccessMode.RO)
        if self.is_gige():
            nm.integer("GevDeviceIPAddress", getter=lambda: self.ip, access=AccessMode.RO, max=0xFFFFFFFF)
            nm.integer("GevDeviceSubnetMask", getter=lambda: self.mask, access=AccessMode.RO, max=0xFFFFFFFF)
            nm.integer("GevDeviceGateway", getter=lambda: self.gateway, access=AccessMode.RO, max=0xFFFFFFFF)
            nm.integer("GevDeviceMACAddress", getter=lambda: self.mac, access=AccessMode.RO, max=2**48-1)
            nm.category("DeviceControl")
            nm.integer("GevDeviceForceIPAddress", max=0xFFFFFFFF)
            nm.integer("GevDeviceForceSubnetMask", max=0xFFFFFFFF)
            nm.integer("GevDeviceForceGateway", max=0xFFFFFFFF)
            nm.command("GevDeviceForceIP", self._force_ip)
        else:
            nm.category("DeviceControl")
        return nm

    def _build_tl_stream(self):
        nm = SimNodeMap()
        nm.category("Root", ["StreamInformation", "BufferHandlingControl"])
        nm.category("StreamInformation")
        nm.string("StreamID", "0", access=AccessMode.RO)
        nm.enum("StreamType", ["GigEVision", "USB3Vision"], self.config["type"], access=AccessMode.RO)
        nm.category("BufferHandlingControl")
        not_streaming = _ro(lambda: not self.is_streaming())
        nm.enum("StreamBufferHandlingMode", ["OldestFirst", "OldestFirstOverwrite", "NewestOnly"],
                access=not_streaming)
        nm.integer("StreamBufferCountManual", 10, min=1, max=100, access=not_streaming)
        return nm

    def _build_genicam(self):
        cfg = self.config
        nm = SimNodeMap()
        streaming = self.is_streaming
        not_streaming = _ro(lambda: not streaming())
        inference = cfg["inference"]

        categories = ["DeviceControl", "ImageFormatControl", "AcquisitionControl", "AnalogControl",
                      "LUTControl", "ChunkDataControl", "SequencerControl", "EventControl",
                      "DigitalIOControl", "LogicBlockControl", "FileAccessControl", "UserSetControl"]
        if inference:
            categories.append("InferenceControl")
        if self.is_gige():
            categories.append("TransportLayerControl")
        nm.category("Root", categories)

        nm.category("DeviceControl")
        nm.string("DeviceVendorName", cfg["vendor"], access=AccessMode.RO)
        nm.string("DeviceModelName", cfg["model"], access=AccessMode.RO)
        nm.string("DeviceVersion", __version__, access=AccessMode.RO)
        nm.string("DeviceSerialNumber", cfg["serial"], access=AccessMode.RO)
        nm.string("DeviceFirmwareVersion", "sim-1.0", access=AccessMode.RO)
        nm.string("DeviceUserID", "", saved=False)
        nm.float("DeviceTemperature", getter=lambda: 40.0 + 5.0*streaming(), unit="C", access=AccessMode.RO)

        nm.category("ImageFormatControl")
        sensor_width = cfg["sensor_width"]
        sensor_height = cfg["sensor_height"]
        nm.integer("SensorWidth", sensor_width, access=AccessMode.RO)
        nm.integer("SensorHeight", sensor_height, access=AccessMode.RO)
        nm.integer("WidthMax", getter=lambda: sensor_width - nm.raw("OffsetX"), access=AccessMode.RO)
        nm.integer("HeightMax", getter=lambda: sensor_height - nm.raw("OffsetY"), access=AccessMode.RO)
        nm.integer("Width", sensor_width, min=16, max=lambda: sensor_width - nm.raw("OffsetX"), inc=8,
                   access=not_streaming)
        nm.integer("Height", sensor_height, min=8, max=lambda: sensor_height - nm.raw("OffsetY"), inc=2,
                   access=not_streaming)
        nm.integer("OffsetX", 0, min=0, max=lambda: sensor_width - nm.raw("Width"), inc=8,
                   access=not_streaming)
        nm.integer("OffsetY", 0, min=0, max=lambda: sensor_height - nm.raw("Height"), inc=2,
                   access=not_streaming)
        nm.enum("PixelFormat", ["Mono8", "Mono12", "Mono16", "BayerRG8"], access=not_streaming)
        nm.enum("TestPatternGeneratorSelector", ["Sensor", "PipelineStart"])
        nm.enum("TestPattern", ["Off", "Increment", "InjectedImage"], selectors=["TestPatternGeneratorSelector"])
        if inference:
            nm.integer("InjectedWidth", sensor_width, min=16, max=sensor_width)
            nm.integer("InjectedHeight", sensor_height, min=8, max=sensor_height)

        nm.category("AcquisitionControl")
        nm.enum("AcquisitionMode", ["Continuous", "SingleFrame", "MultiFrame"], access=not_streaming)
        nm.integer("AcquisitionFrameCount", 2, min=1, max=10000, access=not_streaming)
        nm.boolean("AcquisitionFrameRateEnable", False)
        nm.float("AcquisitionFrameRate", float(cfg["frame_rate"]), min=1.0, max=200.0, unit="Hz",
                 access=_ro(lambda: nm.raw("AcquisitionFrameRateEnable")))
        nm.enum("ExposureAuto", ["Off", "Once", "Continuous"], "Continuous")
        nm.float("ExposureTime", 15000.0, min=10.0, max=30000000.0, unit="us",
                 access=_ro(lambda: nm.symbol("ExposureAuto") == "Off"))
        nm.enum("TriggerSelector", ["FrameStart", "AcquisitionStart"])
        nm.enum("TriggerMode", ["Off", "On"], selectors=["TriggerSelector"])
        trigger_sources = ["Software", "Line0", "Line1", "Line2", "Line3", "UserOutput0", "LogicBlock0",
                           "LogicBlock1"]
        if inference:
            trigger_sources.append("InferenceReady")
        nm.enum("TriggerSource", trigger_sources, selectors=["TriggerSelector"],
                access=_ro(lambda: nm.symbol("TriggerMode", nm.raw("TriggerSelector")) == "Off"))
        nm.enum("TriggerActivation", ["RisingEdge", "FallingEdge", "AnyEdge", "LevelHigh", "LevelLow"],
                selectors=["TriggerSelector"])
        nm.command("TriggerSoftware", self._software_trigger)

        nm.category("AnalogControl")
        nm.enum("GainAuto", ["Off", "Once", "Continuous"], "Continuous")
        nm.float("Gain", 0.0, min=0.0, max=47.99, unit="dB", access=_ro(lambda: nm.symbol("GainAuto") == "Off"))
        nm.float("BlackLevel", 1.0, min=0.0, max=10.0, unit="%")

        nm.category("LUTControl")
        nm.enum("LUTSelector", ["LUT1"])
        nm.boolean("LUTEnable", False)
        nm.integer("LUTIndex", 0, min=0, max=4095)
        nm.integer("LUTValue", lambda lut, index: index, min=0, max=4095, selectors=["LUTSelector", "LUTIndex"])

        nm.category("ChunkDataControl")
        chunk_names = CHUNK_NAMES + (INFERENCE_CHUNK_NAMES if inference else [])
        nm.boolean("ChunkModeActive", False)
        nm.enum("ChunkSelector", chunk_names)
        nm.boolean("ChunkEnable", False, selectors=["ChunkSelector"])
        for name in chunk_names:
            self._add_chunk_node(nm, name)

        nm.category("SequencerControl")
        seq_off = lambda: nm.symbol("SequencerMode") == "Off"
        seq_config = lambda: nm.symbol("SequencerConfigurationMode") == "On"
        nm.enum("SequencerMode", ["Off", "On"], access=_ro(lambda: not streaming() and not seq_config()))
        nm.enum("SequencerConfigurationMode", ["Off", "On"], access=_ro(seq_off))
        nm.enum("SequencerConfigurationValid", ["No", "Yes"], getter=self._sequencer_valid,
                access=AccessMode.RO)
        nm.integer("SequencerSetSelector", 0, min=0, max=31, access=_ro(seq_config))
        nm.integer("SequencerSetStart", 0, min=0, max=31, access=_ro(seq_config))
        nm.integer("SequencerSetNext", 0, min=0, max=31, access=_ro(seq_config))
        nm.enum("SequencerTriggerSource", ["Off", "FrameStart"], "FrameStart", access=_ro(seq_config))
        nm.command("SequencerSetSave", self._sequencer_save, access=_na(seq_config, AccessMode.WO))
        nm.command("SequencerSetLoad", self._sequencer_load, access=_na(seq_config, AccessMode.WO))
        nm.integer("SequencerSetActive", getter=lambda: self._sequencer_state, access=AccessMode.RO)

        nm.category("EventControl")
        nm.enum("EventSelector", list(EVENT_IDS))
        nm.enum("EventNotification", ["Off", "On"], selectors=["EventSelector"])

        nm.category("DigitalIOControl")
        nm.enum("LineSelector", ["Line0", "Line1", "Line2", "Line3"])
        nm.enum("LineMode", ["Input", "Output"], selectors=["LineSelector"])
        nm.enum("UserOutputSelector", ["UserOutput0", "UserOutput1", "UserOutput2"])
        nm.boolean("UserOutputValue", False, selectors=["UserOutputSelector"], on_write=self._user_output_changed)

        nm.category("LogicBlockControl")
        nm.enum("LogicBlockSelector", ["LogicBlock0", "LogicBlock1"])
        nm.enum("LogicBlockLUTSelector", ["Enable", "Value"])
        nm.enum("LogicBlockLUTInputSelector", ["Input0", "Input1", "Input2"])
        nm.enum("LogicBlockLUTInputSource", ["Zero", "FrameTriggerWait", "ExposureStart", "ExposureEnd",
                                             "UserOutput0", "UserOutput1", "UserOutput2", "Line0", "Line1"],
                selectors=["LogicBlockSelector", "LogicBlockLUTInputSelector"])
        nm.enum("LogicBlockLUTInputActivation", ["LevelHigh", "LevelLow", "RisingEdge", "FallingEdge", "AnyEdge"],
                selectors=["LogicBlockSelector", "LogicBlockLUTInputSelector"])
        nm.integer("LogicBlockLUTOutputValueAll", 0, min=0, max=255,
                   selectors=["LogicBlockSelector", "LogicBlockLUTSelector"])

        nm.category("FileAccessControl")
        nm.enum("FileSelector", FILE_NAMES, saved=False)
        nm.enum("FileOperationSelector", ["Open", "Close", "Read", "Write", "Delete"], saved=False)
        nm.enum("FileOpenMode", ["Read", "Write", "ReadWrite"], saved=False)
        nm.integer("FileAccessOffset", 0, min=0, max=64*1024*1024, saved=False)
        nm.integer("FileAccessLength", 4, min=1, max=1024, saved=False)
        nm.register("FileAccessBuffer", 1024)
        nm.command("FileOperationExecute", self._file_operation)
        nm.enum("FileOperationStatus", ["Success", "Failure"], access=AccessMode.RO, saved=False)
        nm.integer("FileOperationResult", 0, access=AccessMode.RO, saved=False)
        nm.integer("FileSize", getter=lambda: len(self.flash.get(nm.symbol("FileSelector"), b"")),
                   access=AccessMode.RO)
        nm.boolean("FileWriteToFlash", True, saved=False)

        nm.category("UserSetControl")
        nm.enum("UserSetSelector", ["Default", "UserSet0", "UserSet1"], saved=False)
        nm.command("UserSetLoad", self._user_set_load, access=_na(lambda: not streaming(), AccessMode.WO))
        nm.command("UserSetSave", self._user_set_save,
                   access=_na(lambda: nm.symbol("UserSetSelector") != "Default", AccessMode.WO))
        nm.enum("UserSetDefault", ["Default", "UserSet0", "UserSet1"], saved=False)

        if inference:
            nm.category("InferenceControl")
            nm.boolean("InferenceEnable", False)
            nm.enum("InferenceNetworkTypeSelector", ["Classification", "Detection"])

        if self.is_gige():
            nm.category("TransportLayerControl")
            nm.boolean("GevCurrentIPConfigurationPersistentIP", False, saved=False)
            nm.integer("GevCurrentIPAddress", getter=lambda: self.ip, access=AccessMode.RO, max=0xFFFFFFFF)
            nm.integer("GevCurrentSubnetMask", getter=lambda: self.mask, access=AccessMode.RO, max=0xFFFFFFFF)
            nm.integer("GevCurrentDefaultGateway", getter=lambda: self.gateway, access=AccessMode.RO,
                       max=0xFFFFFFFF)
            nm.integer("GevPersistentIPAddress", 0, max=0xFFFFFFFF, saved=False)
            nm.integer("GevPersistentSubnetMask", 0, max=0xFFFFFFFF, saved=False)
            nm.integer("GevPersistentDefaultGateway", 0, max=0xFFFFFFFF, saved=False)
            nm.integer("GevSCPSPacketSize", 1500, min=576, max=9000, inc=4)
        return nm

    def _add_chunk_node(self, nm, name):
        present = lambda: nm.raw("ChunkModeActive") and name in self._last_chunk
        access = _na(present, AccessMode.RO)
        getter = lambda: self._last_chunk[name]
        node_name = f"Chunk{name}"
        if name in FLOAT_CHUNKS:
            nm.float(node_name, getter=getter, access=access, saved=False)
        elif name == "PixelFormat":
            nm.string(node_name, getter=getter, access=access, saved=False)
        elif name == "InferenceBoundingBoxResult":
            nm.register(node_name, 4096, getter=getter, access=access)
        else:
            nm.integer(node_name, getter=getter, access=access, saved=False, max=2**63-1)

    # camera lifecycle

    def _open(self):
        if self.wrong_subnet:
            raise CameraError(f"Camera {self.serial} is on a different subnet to its interface",
                              ErrorCode.INVALID_ADDRESS)
        return self.genicam

    def _close(self):
        self._open_file = None

    def _invalidate(self):
        if self._grabber is not None:
            self._grabber.stop()
            self._grabber = None
        super()._invalidate()

    def _power_cycle(self):
        """Reconnect after an unplug, the camera boots from its default user set"""
        logger.debug(f"sim camera {self.serial} powering up")
        self._valid = True
        self._streaming = False
        self._nodemap = None
        self._open_file = None
        with self._handler_lock:
            self._image_handlers = []
            self._device_handlers = []
        for name in self.ddr_files:
            self.flash.pop(name, None)
        self.ddr_files = set()
        nm = self.genicam
        self._apply_user_set(nm.symbol("UserSetDefault"))
        if self.is_gige() and nm.peek("GevCurrentIPConfigurationPersistentIP"):
            self.ip = nm.peek("GevPersistentIPAddress")
            self.mask = nm.peek("GevPersistentSubnetMask")
            self.gateway = nm.peek("GevPersistentDefaultGateway")

    def _force_ip(self):
        nm = self.tl_device_nodemap
        self.ip = nm.peek("GevDeviceForceIPAddress")
        self.mask = nm.peek("GevDeviceForceSubnetMask")
        self.gateway = nm.peek("GevDeviceForceGateway")
        self.wrong_subnet = False
        logger.info(f"sim camera {self.serial} forced to {gev_address.dotted_address(self.ip)}")

    def auto_force_ip(self, interface_address, interface_mask, index):
        """Move the camera onto its interface subnet"""
        if gev_address.same_subnet(self.ip, interface_address, interface_mask) and not self.wrong_subnet:
            return
        host = 100 + index
        self.ip = (interface_address & interface_mask) | host
        self.mask = interface_mask
        self.wrong_subnet = False
        logger.info(f"sim camera {self.serial} auto forced to {gev_address.dotted_address(self.ip)}")

    # acquisition

    def _start(self):
        nm = self.genicam
        self._images = queue.Queue(maxsize=self.tl_stream_nodemap.peek("StreamBufferCountManual"))
        self._triggers = queue.Queue()
        self._frames_this_acquisition = 0
        self._sequencer_state = nm.peek("SequencerSetStart")
        self._grabber = SimFrameGrabber(self)
        self._grabber.start_cb_thread()
        logger.debug(f"sim camera {self.serial} acquisition started")

    def _stop(self):
        if self._grabber is not None:
            self._grabber.stop()
            self._grabber = None
        logger.debug(f"sim camera {self.serial} acquisition stopped")

    def _next_image(self, timeout_ms):
        try:
            return self._images.get(timeout=timeout_ms/1000)
        except queue.Empty:
            if not self._valid:
                raise CameraError(f"Camera {self.serial} was removed", ErrorCode.INVALID_HANDLE) from None
            raise CameraError(f"Failed waiting for an image ({timeout_ms} ms)", ErrorCode.TIMEOUT) from None

    def _deliver(self, image):
        if self.has_image_handlers():
            self._dispatch_image(image)
            return
        mode = self.tl_stream_nodemap.symbol("StreamBufferHandlingMode")
        if mode == "NewestOnly":
            self._drain()
        elif mode == "OldestFirstOverwrite" and self._images.full():
            self._drain(1)
        try:
            self._images.put_nowait(image)
        except queue.Full:
            logger.debug(f"sim camera {self.serial} dropped frame {image.frame_id}, no free buffers")

    def _drain(self, count=None):
        while count is None or count > 0:
            try:
                self._images.get_nowait()
            except queue.Empty:
                return
            if count is not None:
                count -= 1

    def _frame_start_mode(self):
        nm = self.genicam
        frame_start = nm.entry_value("TriggerSelector", "FrameStart")
        if nm.symbol("TriggerMode", frame_start) == "Off":
            return None
        return nm.symbol("TriggerSource", frame_start)

    def _triggered_by_event(self):
        """Software and logic block triggers are queued, line and inference sources run at the frame rate"""
        source = self._frame_start_mode()
        return source is not None and (source == "Software" or source.startswith("LogicBlock"))

    def _frame_rate(self):
        return self.genicam.peek("AcquisitionFrameRate")

    def _acquisition_complete(self):
        mode = self.genicam.symbol("AcquisitionMode")
        if mode == "SingleFrame":
            return self._frames_this_acquisition >= 1
        if mode == "MultiFrame":
            return self._frames_this_acquisition >= self.genicam.peek("AcquisitionFrameCount")
        return False

    def _software_trigger(self):
        if self.is_streaming() and self._frame_start_mode() == "Software":
            self._triggers.put("Software")
        else:
            logger.debug(f"sim camera {self.serial} ignored software trigger")

    def _lut(self):
        nm = self.genicam
        if not nm.peek("LUTEnable"):
            return None
        lut_id = nm.raw("LUTSelector")
        indices = numpy.arange(4096)
        return numpy.array([nm.peek("LUTValue", lut_id, int(i)) for i in indices], dtype=numpy.uint16)

    def _injected_image(self):
        nm = self.genicam
        pipeline = nm.entry_value("TestPatternGeneratorSelector", "PipelineStart")
        if nm.symbol("TestPattern", pipeline) != "InjectedImage" or "InjectedImage" not in self.flash:
            return None
        width, height = nm.peek("InjectedWidth"), nm.peek("InjectedHeight")
        raw = numpy.frombuffer(bytes(self.flash["InjectedImage"]), dtype=numpy.uint8)
        data = numpy.zeros(width*height, dtype=numpy.uint8)
        data[:min(raw.size, data.size)] = raw[:data.size]
        return data.reshape((height, width))

    def _capture_frame(self):
        nm = self.genicam
        if nm.symbol("SequencerMode") == "On" and self._sequencer_state in self.sequencer_sets:
            self._apply_sequencer_set(self.sequencer_sets[self._sequencer_state])
        self._emit_event("ExposureStart")

        frame_id = self._frame_id
        pixel_format = nm.symbol("PixelFormat")
        injected = self._injected_image()
        if injected is not None:
            data = injected
            pixel_format = "Mono8"
        else:
            data = render_frame(nm.peek("Width"), nm.peek("Height"), nm.peek("OffsetX"), nm.peek("OffsetY"),
                                frame_id, nm.peek("ExposureTime"), nm.peek("Gain"), nm.peek("BlackLevel"),
                                pixel_format, self._lut())

        status = ImageStatus.NO_ERROR
        every = int(self.config["incomplete_every"])
        if every and (frame_id + 1) % every == 0:
            status = ImageStatus.MISSING_PACKETS

        timestamp = time.time_ns()
        chunk = self._chunk_data(data, frame_id, pixel_format, timestamp)
        self._last_chunk = chunk
        image = Image(data, pixel_format, frame_id, timestamp, status, nm.peek("OffsetX"), nm.peek("OffsetY"),
                      chunk)

        self._emit_event("ExposureEnd")
        self._frame_id += 1
        self._frames_this_acquisition += 1
        if nm.symbol("SequencerMode") == "On" and self._sequencer_state in self.sequencer_sets:
            current = self.sequencer_sets[self._sequencer_state]
            if current["SequencerTriggerSource"] == "FrameStart":
                self._sequencer_state = current["SequencerSetNext"]
        return image

    def _chunk_data(self, data, frame_id, pixel_format, timestamp):
        nm = self.genicam
        chunk = ChunkData()
        if not nm.peek("ChunkModeActive"):
            return chunk
        values = {
            "FrameID": frame_id,
            "OffsetX": nm.peek("OffsetX"),
            "OffsetY": nm.peek("OffsetY"),
            "Width": data.shape[1],
            "Height": data.shape[0],
            "ExposureTime": nm.peek("ExposureTime"),
            "Gain": nm.peek("Gain"),
            "BlackLevel": nm.peek("BlackLevel"),
            "PixelFormat": pixel_format,
            "Timestamp": timestamp,
            "SequencerSetActive": self._sequencer_state,
        }
        if self.config["inference"] and nm.peek("InferenceEnable") and "InferenceNetwork" in self.flash:
            values.update(self._inference(data, frame_id))
        selector = nm.get_node("ChunkSelector")
        for entry in selector.get_entries():
            if nm.peek("ChunkEnable", entry.value) and entry.symbolic in values:
                chunk[entry.symbolic] = values[entry.symbolic]
        return chunk

    def _inference(self, data, frame_id):
        """Deterministic stand in for the on camera network"""
        mean = float(data.mean())
        result = {
            "InferenceFrameId": frame_id,
            "InferenceResult": int(mean) % 5,
            "InferenceConfidence": round(0.5 + (mean % 50)/100, 3),
        }
        result["InferenceBoundingBoxResult"] = self._bounding_boxes(data, mean, result["InferenceConfidence"])
        return result

    @staticmethod
    def _bounding_boxes(data, mean, confidence):
        """One rectangle and one circle, none for a black image

        int16 little endian: the box count, then per box type, class id,
        confidence in tenths of a percent and five geometry values.
        """
        if not data.any():
            return numpy.zeros(1, dtype="<i2").tobytes()
        height, width = data.shape[:2]
        class_id = int(mean) % 21
        score = int(round(confidence*1000))
        boxes = [
            [0, class_id, score, width//4, height//4, 3*width//4, 3*height//4, 0],
            [1, (class_id + 1) % 21, score, width//2, height//2, height//8, 0, 0],
        ]
        return numpy.array([len(boxes)] + [v for box in boxes for v in box], dtype="<i2").tobytes()

    def _emit_event(self, name):
        nm = self.genicam
        if nm.symbol("EventNotification", nm.entry_value("EventSelector", name)) == "On":
            self._dispatch_device_event(f"Event{name}", EVENT_IDS[name])

    # logic blocks

    def _signal_level(self, source):
        nm = self.genicam
        if source == "FrameTriggerWait":
            return self.is_streaming() and self._frame_start_mode() is not None
        if source.startswith("UserOutput"):
            return bool(nm.peek("UserOutputValue", nm.entry_value("UserOutputSelector", source)))
        return False

    def _logic_block_output(self, block, edges):
        nm = self.genicam
        block_id = nm.entry_value("LogicBlockSelector", block)
        index = 0
        for bit, input_name in enumerate(["Input0", "Input1", "Input2"]):
            input_id = nm.entry_value("LogicBlockLUTInputSelector", input_name)
            source = nm.symbol("LogicBlockLUTInputSource", block_id, input_id)
            activation = nm.symbol("LogicBlockLUTInputActivation", block_id, input_id)
            edge = edges.get(source)
            if activation == "LevelHigh":
                value = self._signal_level(source)
            elif activation == "LevelLow":
                value = not self._signal_level(source)
            elif activation == "RisingEdge":
                value = edge == "rising"
            elif activation == "FallingEdge":
                value = edge == "falling"
            else:
                value = edge is not None
            index |= int(value) << bit
        enable = nm.peek("LogicBlockLUTOutputValueAll", block_id, nm.entry_value("LogicBlockLUTSelector", "Enable"))
        output = nm.peek("LogicBlockLUTOutputValueAll", block_id, nm.entry_value("LogicBlockLUTSelector", "Value"))
        return bool((enable >> index) & 1) and bool((output >> index) & 1)

    def _user_output_changed(self, value, previous):
        if bool(value) == bool(previous):
            return
        source = self.genicam.symbol("UserOutputSelector")
        edges = {source: "rising" if value else "falling"}
        trigger_source = self._frame_start_mode()
        if trigger_source is None or not trigger_source.startswith("LogicBlock") or not self.is_streaming():
            return
        if self._logic_block_output(trigger_source, edges):
            self._triggers.put(trigger_source)

    # sequencer

    def _sequencer_valid(self):
        sets = self.sequencer_sets
        start = self.genicam.lookup(("SequencerSetStart",))
        valid = bool(sets) and start in sets and all(s["SequencerSetNext"] in sets for s in sets.values())
        return 1 if valid else 0

    def _sequencer_save(self):
        nm = self.genicam
        index = nm.peek("SequencerSetSelector")
        self.sequencer_sets[index] = {
            "Width": nm.peek("Width"),
            "Height": nm.peek("Height"),
            "ExposureTime": nm.peek("ExposureTime"),
            "Gain": nm.peek("Gain"),
            "SequencerSetNext": nm.peek("SequencerSetNext"),
            "SequencerTriggerSource": nm.symbol("SequencerTriggerSource"),
        }
        logger.debug(f"sim camera {self.serial} saved sequencer set {index}")

    def _sequencer_load(self):
        index = self.genicam.peek("SequencerSetSelector")
        if index not in self.sequencer_sets:
            raise CameraError(f"Sequencer set {index} was never saved", ErrorCode.INVALID_PARAMETER)
        self._apply_sequencer_set(self.sequencer_sets[index])

    def _apply_sequencer_set(self, state):
        nm = self.genicam
        for name in ("Width", "Height", "ExposureTime", "Gain"):
            nm.poke(name, state[name])

    # user sets

    def _user_set_save(self):
        nm = self.genicam
        name = nm.symbol("UserSetSelector")
        self.user_sets[name] = {key:value for key, value in nm.values.items() if nm.get_node(key[0]).saved}
        logger.debug(f"sim camera {self.serial} saved {name}")

    def _user_set_load(self):
        self._apply_user_set(self.genicam.symbol("UserSetSelector"))

    def _apply_user_set(self, name):
        nm = self.genicam
        for key in [key for key in nm.values if nm.get_node(key[0]).saved]:
            del nm.values[key]
        nm.values.update(self.user_sets.get(name, {}))
        logger.debug(f"sim camera {self.serial} loaded {name}")

    # file access

    def _file_operation(self):
        nm = self.genicam
        operation = nm.symbol("FileOperationSelector")
        name = nm.symbol("FileSelector")
        ok, result = True, 0
        if operation == "Open":
            if self._open_file is not None:
                ok = False
            else:
                mode = nm.symbol("FileOpenMode")
                self._open_file = (name, mode)
                if mode == "Write":
                    self.flash[name] = bytearray()
                else:
                    self.flash.setdefault(name, bytearray())
        elif operation == "Close":
            ok = self._open_file is not None and self._open_file[0] == name
            if ok:
                # a file written to DDR is lost at the next power cycle
                if self._open_file[1] != "Read":
                    if nm.peek("FileWriteToFlash"):
                        self.ddr_files.discard(name)
                    else:
                        self.ddr_files.add(name)
                self._open_file = None
        elif operation == "Write":
            ok = self._open_file == (name, "Write") or self._open_file == (name, "ReadWrite")
            if ok:
                offset = nm.peek("FileAccessOffset")
                chunk = nm.peek("FileAccessBuffer")[:nm.peek("FileAccessLength")]
                content = self.flash[name]
                if len(content) < offset:
                    content.extend(b"\x00"*(offset - len(content)))
                content[offset:offset+len(chunk)] = chunk
                nm.poke("FileAccessOffset", offset + len(chunk))
                result = len(chunk)
        elif operation == "Read":
            ok = self._open_file is not None and self._open_file[0] == name and self._open_file[1] != "Write"
            if ok:
                offset = nm.peek("FileAccessOffset")
                chunk = bytes(self.flash[name][offset:offset+nm.peek("FileAccessLength")])
                nm.poke("FileAccessBuffer", chunk)
                nm.poke("FileAccessOffset", offset + len(chunk))
                result = len(chunk)
        elif operation == "Delete":
            ok = self._open_file is None or self._open_file[0] != name
            if ok:
                self.flash.pop(name, None)
                self.ddr_files.discard(name)
        nm.poke("FileOperationStatus", nm.entry_value("FileOperationStatus", "Success" if ok else "Failure"))
        nm.poke("FileOperationResult", result)
        logger.debug(f"sim camera {self.serial} file {operation} on {name}: {'ok' if ok else 'failed'}")


# ---- interface and system ----

class SimInterface(InterfaceBase):
    def __init__(self, system, config):
        self.config = config
        self.address = gev_address.ipv4_to_int(config["address"])
        self.mask = gev_address.ipv4_to_int(config["mask"])
        nm = SimNodeMap()
        nm.category("Root", ["InterfaceInformation", "DeviceEnumeration"])
        nm.category("InterfaceInformation")
        nm.string("InterfaceID", config["id"], access=AccessMode.RO)
        nm.string("InterfaceDisplayName", config["display_name"], access=AccessMode.RO)
        nm.enum("InterfaceType", ["GigEVision", "USB3Vision"], config["type"], access=AccessMode.RO)
        if config["type"] == "GigEVision":
            nm.integer("GevInterfaceSubnetIPAddress", self.address, access=AccessMode.RO, max=0xFFFFFFFF)
            nm.integer("GevInterfaceSubnetMask", self.mask, access=AccessMode.RO, max=0xFFFFFFFF)
        nm.category("DeviceEnumeration")
        nm.integer("DeviceSelector", 0, min=0, max=lambda: max(0, len(self._cameras()) - 1))
        nm.string("DeviceID", getter=lambda: self._selected().serial if self._selected() else "",
                  access=_na(lambda: self._selected() is not None, AccessMode.RO))
        if config["type"] == "GigEVision":
            nm.command("GevDeviceAutoForceIP", self._auto_force_ip,
                       access=_na(lambda: self._selected() is not None, AccessMode.WO))
        super().__init__(system, nm)

    def _cameras(self):
        return self.get_cameras(update=False)

    def _selected(self):
        cameras = self._cameras()
        index = self.tl_nodemap.peek("DeviceSelector")
        return cameras[index] if index < len(cameras) else None

    def _auto_force_ip(self):
        index = self.tl_nodemap.peek("DeviceSelector")
        self._selected().auto_force_ip(self.address, self.mask, index)


class SimSystem(SystemBase):
    """Simulated transport layer, configured from the [sim] table of the config"""
    def __init__(self, config=None):
        super().__init__(config)
        sim_config = self.config.get("sim", {})
        interfaces = sim_config.get("interfaces") or [DEFAULT_INTERFACE]
        self._interfaces = {}
        for iface in interfaces:
            iface = {**DEFAULT_INTERFACE, **iface}
            self._interfaces[iface["id"]] = SimInterface(self, iface)

        self._camera_configs = {}
        self._devices = {}
        self._present = set()
        for index, cam in enumerate(sim_config.get("cameras", [DEFAULT_CAMERA])):
            self.add_camera(cam, index)

    def add_camera(self, camera_config, index=None):
        """Connect another simulated camera, returns its serial number"""
        index = len(self._camera_configs) if index is None else index
        cfg = {**DEFAULT_CAMERA, **camera_config}
        if "serial" not in camera_config:
            cfg["serial"] = str(int(DEFAULT_CAMERA["serial"]) + index)
        if "mac" not in camera_config:
            cfg["mac"] = gev_address.mac_address(gev_address.mac_to_int(DEFAULT_CAMERA["mac"]) + index)
        if "ip" not in camera_config:
            cfg["ip"] = gev_address.dotted_address(gev_address.ipv4_to_int(DEFAULT_CAMERA["ip"]) + index)
        cfg["serial"] = str(cfg["serial"])
        if cfg["interface"] not in self._interfaces:
            raise CameraError(f"No simulated interface {cfg['interface']}", ErrorCode.INVALID_ID)
        self._camera_configs[cfg["serial"]] = cfg
        self._present.add(cfg["serial"])
        return cfg["serial"]

    def unplug(self, serial):
        logger.info(f"sim camera {serial} unplugged")
        self._present.discard(str(serial))

    def plug(self, serial):
        logger.info(f"sim camera {serial} plugged in")
        self._present.add(str(serial))

    def get_library_version(self):
        parts = [int(p) for p in re.findall(r"\d+", __version__)[:3]]
        parts += [0]*(3 - len(parts))
        return LibraryVersion(parts[0], parts[1], 0, parts[2])

    def get_interfaces(self):
        return list(self._interfaces.values())

    def _enumerate(self):
        return {serial:self._camera_configs[serial]["interface"] for serial in self._present}

    def _create_camera(self, serial, interface_id):
        cam = self._devices.get(serial)
        if cam is None:
            cam = SimCamera(self, self._camera_configs[serial])
            self._devices[serial] = cam
        else:
            cam._power_cycle()
        return cam

    def _release(self):
        for cam in self._devices.values():
            if cam._grabber is not None:
                cam._grabber.stop()
                cam._grabber = None
