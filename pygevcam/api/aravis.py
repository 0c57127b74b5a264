"""
The Aravis backend, GenICam cameras through the Aravis 0.8 GObject API

Aravis owns the transport and the GenICam XML, this module adapts its
nodes, devices and streams to the common node / camera / system model.
"""

import threading

import numpy

import gi
gi.require_version('Aravis', '0.8')
from gi.repository import Aravis, GLib

from pygevcam.logger import logger
from pygevcam import gev_address
from pygevcam.api.errors import CameraError, ErrorCode
from pygevcam.api.events import LogLevel
from pygevcam.api.nodes import AccessMode, Node, NodeMap, NodeType
from pygevcam.api.device import (CameraBase, ChunkData, Image, ImageStatus, InterfaceBase,
                                 LibraryVersion, SystemBase)
from pygevcam.api.sim import SimNodeMap

NODE_TYPES = {
    "Integer": NodeType.Integer,
    "IntReg": NodeType.Integer,
    "MaskedIntReg": NodeType.Integer,
    "IntSwissKnife": NodeType.Integer,
    "IntConverter": NodeType.Integer,
    "StructEntry": NodeType.Integer,
    "Float": NodeType.Float,
    "FloatReg": NodeType.Float,
    "SwissKnife": NodeType.Float,
    "Converter": NodeType.Float,
    "Boolean": NodeType.Boolean,
    "Command": NodeType.Command,
    "String": NodeType.String,
    "StringReg": NodeType.String,
    "Register": NodeType.Register,
    "Enumeration": NodeType.Enumeration,
    "EnumEntry": NodeType.EnumEntry,
    "Category": NodeType.Category,
    "Port": NodeType.Port,
}

ACCESS_MODES = {
    "ro": AccessMode.RO,
    "wo": AccessMode.WO,
    "rw": AccessMode.RW,
}

BUFFER_STATUS = {
    "success": ImageStatus.NO_ERROR,
    "missing-packets": ImageStatus.MISSING_PACKETS,
    "wrong-packet-id": ImageStatus.PACKETID_INCONSISTENT,
    "size-mismatch": ImageStatus.DATA_OVERFLOW,
    "timeout": ImageStatus.DATA_INCOMPLETE,
    "filling": ImageStatus.DATA_INCOMPLETE,
    "aborted": ImageStatus.DATA_INCOMPLETE,
    "payload-not-supported": ImageStatus.INFO_INCONSISTENT,
}

DEVICE_ERRORS = {
    "timeout": ErrorCode.TIMEOUT,
    "not-connected": ErrorCode.INVALID_HANDLE,
    "feature-not-found": ErrorCode.NOT_AVAILABLE,
    "wrong-feature": ErrorCode.INVALID_PARAMETER,
    "invalid-parameter": ErrorCode.INVALID_PARAMETER,
    "not-found": ErrorCode.NOT_AVAILABLE,
    "transfer-error": ErrorCode.IO,
    "protocol-error": ErrorCode.IO,
    "not-controller": ErrorCode.ACCESS_DENIED,
}

ARAVIS_DEBUG = {
    LogLevel.DEBUG: "all:2",
    LogLevel.NOTSET: "all:3",
}

EXPOSURE_END_EVENT_ID = 0x9C42


def glib_error(e:GLib.Error, action="") -> CameraError:
    """Convert an error raised by Aravis into a CameraError"""
    code = ErrorCode.ERROR
    if e.domain == GLib.quark_to_string(Aravis.device_error_quark()):
        try:
            nick = Aravis.DeviceError(e.code).value_nick
        except ValueError:
            nick = ""
        code = DEVICE_ERRORS.get(nick, ErrorCode.ERROR)
    message = f"{action}: {e.message}" if action else e.message
    return CameraError(message, code)


# ---- node adapters ----

class ArvNode(Node):
    def __init__(self, gc_node, node_type):
        super().__init__(gc_node.get_name(), display_name=gc_node.get_display_name(),
                         description=gc_node.get_description() or "", tooltip=gc_node.get_tooltip() or "")
        self.gc_node = gc_node
        self.node_type = node_type

    def get_access_mode(self):
        try:
            if not self.gc_node.is_implemented():
                return AccessMode.NI
            if not self.gc_node.is_available():
                return AccessMode.NA
        except GLib.Error:
            return AccessMode.NA
        return ACCESS_MODES.get(self.gc_node.get_actual_access_mode().value_nick, AccessMode.RW)

    def _call(self, method, *args):
        try:
            return getattr(self.gc_node, method)(*args)
        except GLib.Error as e:
            raise glib_error(e, f"{method} on {self.name}") from e

    def get_value(self):
        return self._call("get_value")

    def set_value(self, value):
        self._call("set_value", value)
        self.notify()

    def to_string(self):
        return self._call("get_value_as_string")

    def from_string(self, value):
        self._call("set_value_from_string", value)
        self.notify()


class ArvNumber(ArvNode):
    @property
    def unit(self):
        return self.gc_node.get_unit() or ""

    def get_min(self):
        return self._call("get_min")

    def get_max(self):
        return self._call("get_max")

    def get_inc(self):
        if self.node_type == NodeType.Float:
            return None
        return self._call("get_inc")


class ArvEnumEntry(ArvNode):
    @property
    def symbolic(self):
        return self.gc_node.get_name()

    def get_value(self):
        return self._call("get_value")


class ArvEnumeration(ArvNode):
    def get_entries(self):
        return [ArvEnumEntry(entry, NodeType.EnumEntry) for entry in self._call("get_entries")]

    def get_entry_by_name(self, symbolic):
        for entry in self.get_entries():
            if entry.symbolic == symbolic:
                return entry
        return None

    def get_current_entry(self):
        return self.get_entry_by_name(self._call("get_string_value"))

    def get_int_value(self):
        return self._call("get_int_value")

    def set_int_value(self, value):
        self._call("set_int_value", value)
        self.notify()

    def get_value(self):
        return self.get_int_value()

    def set_value(self, value):
        if isinstance(value, str):
            self.from_string(value)
        else:
            self.set_int_value(value)

    def to_string(self):
        return self._call("get_string_value")

    def from_string(self, value):
        self._call("set_string_value", value)
        self.notify()


class ArvCommand(ArvNode):
    def execute(self):
        self._call("execute")
        self.notify()

    def is_done(self):
        return True


class ArvRegister(ArvNode):
    def get_length(self):
        return self._call("get_length")

    def get(self):
        return bytes(self._call("get", self.get_length()))

    def set(self, data):
        self._call("set", bytes(data))
        self.notify()

    def get_value(self):
        return self.get()

    def set_value(self, value):
        self.set(value)


class ArvCategory(ArvNode):
    def __init__(self, gc_node, node_type, nodemap):
        super().__init__(gc_node, node_type)
        self.nodemap = nodemap

    def get_features(self):
        nodes = (self.nodemap.get_node(name) for name in self.gc_node.get_features())
        return [node for node in nodes if node is not None]


ADAPTERS = {
    NodeType.Integer: ArvNumber,
    NodeType.Float: ArvNumber,
    NodeType.Enumeration: ArvEnumeration,
    NodeType.EnumEntry: ArvEnumEntry,
    NodeType.Command: ArvCommand,
    NodeType.Register: ArvRegister,
}


class ArvNodeMap(NodeMap):
    """The device GenICam tree, nodes are wrapped on first access"""
    def __init__(self, genicam):
        super().__init__()
        self.genicam = genicam

    def get_node(self, name):
        node = self._nodes.get(name)
        if node is not None:
            return node
        gc_node = self.genicam.get_node(name)
        if gc_node is None:
            return None
        node_type = NODE_TYPES.get(gc_node.get_node_name(), NodeType.Unknown)
        if node_type == NodeType.Category:
            node = ArvCategory(gc_node, node_type, self)
        else:
            node = ADAPTERS.get(node_type, ArvNode)(gc_node, node_type)
        return self.add_node(node)

    def get_nodes(self):
        root = self.get_node("Root")
        found = {}

        def walk(node):
            found[node.name] = node
            if node.node_type == NodeType.Category:
                for child in node.get_features():
                    walk(child)
        if root is not None:
            walk(root)
        return list(found.values())


# ---- camera ----

class ArvCamera(CameraBase):
    def __init__(self, system, index, interface_id):
        self.device_id = Aravis.get_device_id(index)
        self.protocol = Aravis.get_device_protocol(index)
        tl_device = self._build_tl_device(index)
        tl_stream = SimNodeMap()
        tl_stream.category("Root")
        tl_stream.string("StreamID", "0", access=AccessMode.RO)
        tl_stream.enum("StreamType", ["GigEVision", "USB3Vision"],
                       self.protocol if self.protocol in ("GigEVision", "USB3Vision") else None,
                       access=AccessMode.RO)
        tl_stream.integer("StreamBufferCountManual", 10, min=1, max=1000)
        super().__init__(system, interface_id, tl_device, tl_stream)
        self.camhandle = None
        self.stream = None
        self.chunk_parser = None
        self.pixel_format = "Mono8"
        self._stream_lock = threading.Lock()

    def _build_tl_device(self, index):
        nm = SimNodeMap()
        nm.category("Root", ["DeviceInformation"])
        nm.category("DeviceInformation")
        nm.string("DeviceID", self.device_id, access=AccessMode.RO)
        nm.string("DeviceSerialNumber", Aravis.get_device_serial_nbr(index) or "", access=AccessMode.RO)
        nm.string("DeviceVendorName", Aravis.get_device_vendor(index) or "", access=AccessMode.RO)
        nm.string("DeviceModelName", Aravis.get_device_model(index) or "", access=AccessMode.RO)
        nm.string("DeviceDisplayName", f"{Aravis.get_device_vendor(index)} {Aravis.get_device_model(index)}",
                  access=AccessMode.RO)
        nm.enum("DeviceType", ["GigEVision", "USB3Vision", "Unknown"],
                self.protocol if self.protocol in ("GigEVision", "USB3Vision") else "Unknown",
                access=AccessMode.RO)
        if self.protocol == "GigEVision":
            address = Aravis.get_device_address(index) or ""
            nm.integer("GevDeviceIPAddress", gev_address.ipv4_to_int(address), access=AccessMode.RO,
                       max=0xFFFFFFFF)
            current = lambda name: (lambda: self._nodemap.get_node(name).get_value())
            opened = lambda: AccessMode.RO if self.is_initialized() else AccessMode.NA
            nm.integer("GevDeviceSubnetMask", getter=current("GevCurrentSubnetMask"), access=opened,
                       max=0xFFFFFFFF)
            nm.integer("GevDeviceGateway", getter=current("GevCurrentDefaultGateway"), access=opened,
                       max=0xFFFFFFFF)
            physical_id = Aravis.get_device_physical_id(index) or "00:00:00:00:00:00"
            nm.integer("GevDeviceMACAddress", gev_address.mac_to_int(physical_id), access=AccessMode.RO,
                       max=2**48-1)
        return nm

    def _open(self):
        try:
            self.camhandle = Aravis.Camera.new(self.device_id)
        except GLib.Error as e:
            raise glib_error(e, f"Unable to open {self.device_id}") from e
        config = self.system.config.get("gige", {})
        if self.protocol == "GigEVision" and config.get("auto_packet_size", True):
            try:
                self.camhandle.gv_auto_packet_size()
            except GLib.Error as e:
                logger.warning(f"automatic packet size negotiation failed on {self.serial}: {e.message}")
        return ArvNodeMap(self.camhandle.get_device().get_genicam())

    def _close(self):
        self.chunk_parser = None
        self.camhandle = None

    def _buffer_callback(self, user_data, cb_type, buffer):
        if cb_type != Aravis.StreamCallbackType.BUFFER_DONE or not self.has_image_handlers():
            return
        with self._stream_lock:
            if self.stream is None:
                return
            buffer = self.stream.try_pop_buffer()
        if buffer is not None:
            self._dispatch_image(self._make_image(buffer))

    def _start(self):
        try:
            self.pixel_format = self.camhandle.get_pixel_format_as_string()
            self.stream = self.camhandle.create_stream(self._buffer_callback, None)
            payload = self.camhandle.get_payload()
            for _ in range(self.tl_stream_nodemap.peek("StreamBufferCountManual")):
                self.stream.push_buffer(Aravis.Buffer.new_allocate(payload))
            self.chunk_parser = self.camhandle.create_chunk_parser()
            self.camhandle.start_acquisition()
        except GLib.Error as e:
            self.stream = None
            raise glib_error(e, f"Unable to begin acquisition on {self.serial}") from e
        logger.debug(f"acquisition started on {self.serial}, payload {payload}")

    def _stop(self):
        try:
            self.camhandle.stop_acquisition()
        except GLib.Error as e:
            raise glib_error(e, f"Unable to end acquisition on {self.serial}") from e
        finally:
            with self._stream_lock:
                self.stream = None
        logger.debug(f"acquisition stopped on {self.serial}")

    def _next_image(self, timeout_ms):
        buffer = self.stream.timeout_pop_buffer(timeout_ms*1000)
        if buffer is None:
            raise CameraError(f"Failed waiting for an image ({timeout_ms} ms)", ErrorCode.TIMEOUT)
        return self._make_image(buffer)

    def _make_image(self, buffer):
        stream = self.stream
        status = BUFFER_STATUS.get(buffer.get_status().value_nick, ImageStatus.DATA_INCOMPLETE)
        width, height = buffer.get_image_width(), buffer.get_image_height()
        raw = buffer.get_image_data()
        dtype = numpy.uint8 if len(raw) <= width*height else numpy.uint16
        data = numpy.frombuffer(raw, dtype=dtype)
        if status == ImageStatus.NO_ERROR:
            data = data[:width*height].reshape((height, width))
        else:
            data = numpy.resize(data, (height, width))
        chunk = self._parse_chunks(buffer) if buffer.has_chunks() else ChunkData()
        if self._device_handlers:
            self._dispatch_device_event("EventExposureEnd", EXPOSURE_END_EVENT_ID)
        return Image(data, self.pixel_format, buffer.get_frame_id(), buffer.get_timestamp(), status,
                     buffer.get_image_x(), buffer.get_image_y(), chunk,
                     on_release=lambda: stream.push_buffer(buffer))

    def _parse_chunks(self, buffer):
        chunk = ChunkData()
        selector = self._nodemap.get_node("ChunkSelector")
        if selector is None:
            return chunk
        for entry in selector.get_entries():
            name = f"Chunk{entry.symbolic}"
            node = self._nodemap.get_node(name)
            if node is None:
                continue
            try:
                if node.node_type == NodeType.Float:
                    chunk[entry.symbolic] = self.chunk_parser.get_float_value(buffer, name)
                elif node.node_type == NodeType.Integer:
                    chunk[entry.symbolic] = self.chunk_parser.get_integer_value(buffer, name)
                else:
                    chunk[entry.symbolic] = self.chunk_parser.get_string_value(buffer, name)
            except GLib.Error:
                # chunk not enabled for this buffer
                continue
        return chunk


# ---- interface and system ----

class ArvInterface(InterfaceBase):
    def __init__(self, system, interface_id):
        nm = SimNodeMap()
        nm.category("Root", ["InterfaceInformation"])
        nm.category("InterfaceInformation")
        nm.string("InterfaceID", interface_id, access=AccessMode.RO)
        nm.string("InterfaceDisplayName", f"Aravis {interface_id} interface", access=AccessMode.RO)
        nm.enum("InterfaceType", ["GigEVision", "USB3Vision", "Unknown"],
                interface_id if interface_id in ("GigEVision", "USB3Vision") else "Unknown",
                access=AccessMode.RO)
        super().__init__(system, nm)


class AravisSystem(SystemBase):
    def __init__(self, config=None):
        super().__init__(config)
        self._indices = {}
        self._interfaces = {}
        for i in range(Aravis.get_n_interfaces()):
            interface_id = Aravis.get_interface_id(i)
            if interface_id == "Fake" and not self.config.get("aravis", {}).get("fake", False):
                continue
            self._interfaces[interface_id] = ArvInterface(self, interface_id)
        if self.config.get("aravis", {}).get("fake", False):
            Aravis.enable_interface("Fake")

    def get_library_version(self):
        return LibraryVersion(Aravis.get_major_version(), Aravis.get_minor_version(), 0,
                              Aravis.get_micro_version())

    def get_interfaces(self):
        return list(self._interfaces.values())

    def _enumerate(self):
        Aravis.update_device_list()
        found = {}
        self._indices = {}
        for i in range(Aravis.get_n_devices()):
            serial = Aravis.get_device_serial_nbr(i) or Aravis.get_device_id(i)
            interface_id = Aravis.get_device_protocol(i)
            found[serial] = interface_id
            self._indices[serial] = i
        logger.debug(f"aravis device list updated, {len(found)} devices")
        return found

    def _create_camera(self, serial, interface_id):
        return ArvCamera(self, self._indices[serial], interface_id)

    def _release(self):
        Aravis.shutdown()

    def _logging_level_changed(self, level):
        if level in ARAVIS_DEBUG:
            Aravis.debug_enable(ARAVIS_DEBUG[level])
        else:
            Aravis.debug_enable("all:0")
