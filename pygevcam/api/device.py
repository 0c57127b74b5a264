"""
The system, interface, camera and image objects shared by all backends

Backends subclass SystemBase, InterfaceBase and CameraBase and fill in the
hooks that raise NotImplementedError. Everything the examples touch that is
not backend specific (singleton handling, event dispatch, logging handlers,
the camera list) lives here.
"""

from collections import namedtuple
from enum import IntEnum
import threading

import numpy

from pygevcam.logger import logger
from pygevcam.api.errors import CameraError, ErrorCode
from pygevcam.api.events import DeviceArrivalMonitor, LogLevel, LOGURU_LEVELS
from pygevcam.api.nodes import is_readable

LibraryVersion = namedtuple('LibraryVersion', ['major', 'minor', 'type', 'build'])


class ImageStatus(IntEnum):
    NO_ERROR = 0
    CRC_CHECK_FAILED = 1
    DATA_OVERFLOW = 2
    MISSING_PACKETS = 3
    LEADER_BUFFER_SIZE_INCONSISTENT = 4
    TRAILER_BUFFER_SIZE_INCONSISTENT = 5
    PACKETID_INCONSISTENT = 6
    MISSING_LEADER = 7
    MISSING_TRAILER = 8
    DATA_INCOMPLETE = 9
    INFO_INCONSISTENT = 10
    CHUNK_DATA_INVALID = 11
    NO_SYSTEM_RESOURCES = 12


class ChunkData(dict):
    """Chunk values of one image, keyed by chunk name without the Chunk prefix"""
    def _get(self, name):
        if name not in self:
            raise CameraError(f"Chunk {name} not present in image", ErrorCode.PARSING_CHUNK_DATA)
        return super().__getitem__(name)

    def __getitem__(self, name):
        return self._get(name)

    def get_int(self, name):
        return int(self._get(name))

    def get_float(self, name):
        return float(self._get(name))

    def get_bytes(self, name):
        value = self._get(name)
        if isinstance(value, numpy.ndarray):
            return value.tobytes()
        return bytes(value)


class Image:
    def __init__(self, data, pixel_format="Mono8", frame_id=0, timestamp=0,
                 status=ImageStatus.NO_ERROR, offset_x=0, offset_y=0, chunk_data=None,
                 on_release=None):
        self.data = data
        self.pixel_format = pixel_format
        self.frame_id = frame_id
        self.timestamp = timestamp
        self.status = ImageStatus(status)
        self.offset_x = offset_x
        self.offset_y = offset_y
        self.chunk_data = chunk_data if chunk_data is not None else ChunkData()
        self._on_release = on_release
        self.released = False

    def __repr__(self):
        return f"<Image {self.frame_id} {self.width}x{self.height} {self.pixel_format}>"

    @property
    def width(self):
        return self.data.shape[1]

    @property
    def height(self):
        return self.data.shape[0]

    def is_incomplete(self):
        return self.status != ImageStatus.NO_ERROR

    def get_status_description(self):
        return self.status.name

    def convert(self, pixel_format):
        """Return a new image in the requested pixel format, the original is untouched"""
        from pygevcam.imaging import convert
        data = convert(self.data, self.pixel_format, pixel_format)
        return Image(data, pixel_format, self.frame_id, self.timestamp, self.status,
                     self.offset_x, self.offset_y, ChunkData(self.chunk_data))

    def save(self, path):
        from pygevcam.imaging import save_image
        return save_image(self.data, path)

    def release(self):
        """Hand the buffer back to the backend, only the first call has an effect"""
        if self.released:
            return
        self.released = True
        if self._on_release is not None:
            self._on_release()


class CameraList(list):
    def get_by_serial(self, serial):
        for cam in self:
            if cam.serial == str(serial):
                return cam
        return None

    def get_by_index(self, index):
        if index < 0 or index >= len(self):
            raise CameraError(f"No camera at index {index}", ErrorCode.INVALID_INDEX)
        return self[index]


class CameraBase:
    """A camera found by the system

    The transport layer node maps are available straight away, the GenICam
    node map only between init() and deinit().
    """
    def __init__(self, system, interface_id, tl_device_nodemap, tl_stream_nodemap):
        self.system = system
        self.interface_id = interface_id
        self.tl_device_nodemap = tl_device_nodemap
        self.tl_stream_nodemap = tl_stream_nodemap
        self._nodemap = None
        self._streaming = False
        self._valid = True

        self._handler_lock = threading.Lock()
        self._image_handlers = []
        self._device_handlers = []

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.serial}>"

    @property
    def serial(self):
        node = self.tl_device_nodemap.get_node("DeviceSerialNumber")
        if is_readable(node):
            return str(node.get_value())
        return ""

    @property
    def nodemap(self):
        if self._nodemap is None:
            raise CameraError(f"Camera {self.serial} is not initialized", ErrorCode.NOT_INITIALIZED)
        return self._nodemap

    def is_valid(self):
        return self._valid

    def _invalidate(self):
        self._valid = False
        self._streaming = False

    def is_initialized(self):
        return self._nodemap is not None

    def init(self):
        if not self._valid:
            raise CameraError(f"Camera {self.serial} is no longer connected", ErrorCode.INVALID_HANDLE)
        if self._nodemap is None:
            logger.debug(f"initialising camera {self.serial}")
            self._nodemap = self._open()

    def deinit(self):
        if self._nodemap is None:
            return
        if self._streaming:
            self.end_acquisition()
        logger.debug(f"deinitialising camera {self.serial}")
        self._close()
        self._nodemap = None

    def is_streaming(self):
        return self._streaming

    def begin_acquisition(self):
        if self._streaming:
            raise CameraError(f"Camera {self.serial} is already streaming", ErrorCode.RESOURCE_IN_USE)
        self._start()
        self._streaming = True

    def end_acquisition(self):
        if not self._streaming:
            raise CameraError(f"Camera {self.serial} is not streaming", ErrorCode.NOT_INITIALIZED)
        self._streaming = False
        self._stop()

    def get_next_image(self, timeout_ms=1000):
        """Wait for the next image, raise CameraError TIMEOUT if none arrives"""
        if not self._streaming:
            raise CameraError(f"Camera {self.serial} is not streaming", ErrorCode.NOT_INITIALIZED)
        return self._next_image(timeout_ms)

    # image events

    def register_image_event_handler(self, handler):
        with self._handler_lock:
            self._image_handlers.append(handler)

    def unregister_image_event_handler(self, handler):
        with self._handler_lock:
            if handler not in self._image_handlers:
                raise CameraError("Image event handler was not registered", ErrorCode.INVALID_PARAMETER)
            self._image_handlers.remove(handler)

    def has_image_handlers(self):
        with self._handler_lock:
            return bool(self._image_handlers)

    def _dispatch_image(self, image):
        with self._handler_lock:
            handlers = list(self._image_handlers)
        for handler in handlers:
            try:
                handler.on_image_event(image)
            except Exception as e:
                logger.exception(f"image event handler failed on camera {self.serial}: {e}")
        image.release()

    # device events

    def register_device_event_handler(self, handler, event_name=None):
        """Register for every device event, or for one event if event_name is given"""
        with self._handler_lock:
            self._device_handlers.append((handler, event_name))

    def unregister_device_event_handler(self, handler):
        with self._handler_lock:
            before = len(self._device_handlers)
            self._device_handlers = [(h, n) for h, n in self._device_handlers if h is not handler]
            if before == len(self._device_handlers):
                raise CameraError("Device event handler was not registered", ErrorCode.INVALID_PARAMETER)

    def _dispatch_device_event(self, event_name, event_id):
        with self._handler_lock:
            handlers = list(self._device_handlers)
        for handler, bound_name in handlers:
            if bound_name is not None and bound_name != event_name:
                continue
            handler._set_event(event_name, event_id)
            try:
                handler.on_device_event(event_name)
            except Exception as e:
                logger.exception(f"device event handler failed on camera {self.serial}: {e}")

    # backend hooks

    def _open(self):
        """Return the GenICam node map"""
        raise NotImplementedError

    def _close(self):
        pass

    def _start(self):
        raise NotImplementedError

    def _stop(self):
        raise NotImplementedError

    def _next_image(self, timeout_ms):
        raise NotImplementedError


class InterfaceBase:
    def __init__(self, system, tl_nodemap):
        self.system = system
        self.tl_nodemap = tl_nodemap

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.interface_id}>"

    @property
    def interface_id(self):
        return self.tl_nodemap.get_node("InterfaceID").get_value()

    @property
    def display_name(self):
        node = self.tl_nodemap.get_node("InterfaceDisplayName")
        if is_readable(node):
            return node.get_value()
        return self.interface_id

    def is_gige(self):
        node = self.tl_nodemap.get_node("InterfaceType")
        return is_readable(node) and node.get_current_entry().symbolic == "GigEVision"

    def update_cameras(self):
        return self.system.update_cameras()

    def get_cameras(self, update=True):
        cameras = self.system.get_cameras(update=update)
        return CameraList(cam for cam in cameras if cam.interface_id == self.interface_id)

    def register_event_handler(self, handler):
        self.system.monitor.register_handler(handler, self.interface_id)

    def unregister_event_handler(self, handler):
        if not self.system.monitor.unregister_handler(handler, self.interface_id):
            raise CameraError("Interface event handler was not registered", ErrorCode.INVALID_PARAMETER)


class SystemBase:
    """The backend singleton, use get_instance and release_instance"""
    _lock = threading.Lock()
    _instance = None
    _refcount = 0

    def __init__(self, config=None):
        self.config = config or {}
        self._cameras = {}
        self._cam_lock = threading.RLock()
        self._log_lock = threading.Lock()
        self._log_sinks = {}
        self._log_level = LogLevel.NOTSET
        self.monitor = DeviceArrivalMonitor(self, interval=self.config.get("monitor_interval", 0.5))

    @classmethod
    def get_instance(cls, config=None):
        with SystemBase._lock:
            if cls._instance is None:
                logger.debug(f"creating {cls.__name__} instance")
                cls._instance = cls(config)
                cls._refcount = 0
            cls._refcount += 1
            return cls._instance

    def release_instance(self):
        cls = type(self)
        with SystemBase._lock:
            if cls._instance is not self:
                raise CameraError("System instance already released", ErrorCode.INVALID_HANDLE)
            cls._refcount -= 1
            if cls._refcount > 0:
                return
            cls._instance = None
        self.monitor.stop()
        self.unregister_all_logging_handlers()
        with self._cam_lock:
            cameras = list(self._cameras.values())
            self._cameras.clear()
        for cam in cameras:
            if cam.is_initialized():
                logger.warning(f"camera {cam.serial} still initialised when the system was released")
                cam.deinit()
        self._release()
        logger.debug(f"released {cls.__name__} instance")

    def is_in_use(self):
        return type(self)._instance is self

    # cameras and interfaces

    def update_cameras(self):
        """Rescan the transport layer, return True if the camera list changed"""
        found = self._enumerate()
        changed = False
        with self._cam_lock:
            for serial in list(self._cameras):
                if serial not in found:
                    logger.debug(f"camera {serial} removed")
                    self._cameras.pop(serial)._invalidate()
                    changed = True
            for serial, interface_id in found.items():
                if serial not in self._cameras:
                    logger.debug(f"camera {serial} found on {interface_id}")
                    self._cameras[serial] = self._create_camera(serial, interface_id)
                    changed = True
        return changed

    def get_cameras(self, update=True):
        if update:
            self.update_cameras()
        with self._cam_lock:
            return CameraList(self._cameras[serial] for serial in sorted(self._cameras))

    def scan_serials(self):
        """Serial numbers currently present, grouped by interface id"""
        self.update_cameras()
        grouped = {}
        with self._cam_lock:
            for serial, cam in self._cameras.items():
                grouped.setdefault(cam.interface_id, set()).add(serial)
        return grouped

    # interface events

    def register_interface_event_handler(self, handler):
        self.monitor.register_handler(handler, None)

    def unregister_interface_event_handler(self, handler):
        if not self.monitor.unregister_handler(handler, None):
            raise CameraError("Interface event handler was not registered", ErrorCode.INVALID_PARAMETER)

    # logging events

    def _add_sink(self, handler):
        return logger.add(handler.sink, level=LOGURU_LEVELS[self._log_level], filter="pygevcam",
                          format="{message}")

    def register_logging_handler(self, handler):
        with self._log_lock:
            if handler in self._log_sinks:
                return
            if self._log_level == LogLevel.OFF:
                self._log_sinks[handler] = None
            else:
                self._log_sinks[handler] = self._add_sink(handler)

    def unregister_logging_handler(self, handler):
        with self._log_lock:
            if handler not in self._log_sinks:
                raise CameraError("Logging handler was not registered", ErrorCode.INVALID_PARAMETER)
            sink_id = self._log_sinks.pop(handler)
        if sink_id is not None:
            logger.remove(sink_id)

    def unregister_all_logging_handlers(self):
        with self._log_lock:
            sinks = list(self._log_sinks.values())
            self._log_sinks.clear()
        for sink_id in sinks:
            if sink_id is not None:
                logger.remove(sink_id)

    def get_logging_level(self):
        return self._log_level

    def set_logging_level(self, level):
        """Handlers receive events at this priority and anything more severe"""
        self._log_level = LogLevel(level)
        with self._log_lock:
            for handler, sink_id in self._log_sinks.items():
                if sink_id is not None:
                    logger.remove(sink_id)
                if self._log_level == LogLevel.OFF:
                    self._log_sinks[handler] = None
                else:
                    self._log_sinks[handler] = self._add_sink(handler)
        self._logging_level_changed(self._log_level)

    # backend hooks

    def get_library_version(self):
        raise NotImplementedError

    def get_interfaces(self):
        raise NotImplementedError

    def _enumerate(self):
        """Return a dict of serial number -> interface id"""
        raise NotImplementedError

    def _create_camera(self, serial, interface_id):
        raise NotImplementedError

    def _release(self):
        pass

    def _logging_level_changed(self, level):
        pass
