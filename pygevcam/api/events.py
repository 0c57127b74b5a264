"""
Event handler base classes and the device arrival monitor

Handlers are subclassed by the examples. The camera and system objects call
the on_* methods from their own threads, so handlers that share state with
the main thread need to protect it.
"""

from dataclasses import dataclass
from enum import IntEnum
import threading

from pygevcam.logger import logger
from pygevcam.utils.cb_thread import CallbackThread


class ImageEventHandler:
    def on_image_event(self, image):
        """Needs reimplementing in subclass"""
        raise NotImplementedError


class DeviceEventHandler:
    def __init__(self):
        self._event_name = ""
        self._event_id = 0

    def _set_event(self, event_name, event_id):
        self._event_name = event_name
        self._event_id = event_id

    def get_device_event_name(self):
        return self._event_name

    def get_device_event_id(self):
        return self._event_id

    def on_device_event(self, event_name):
        """Needs reimplementing in subclass"""
        raise NotImplementedError


class InterfaceEventHandler:
    """Receives device arrival and removal, by serial number"""
    def on_device_arrival(self, serial):
        pass

    def on_device_removal(self, serial):
        pass


class LogLevel(IntEnum):
    """Priorities of logging events, lower is more severe"""
    OFF = -1
    FATAL = 0
    ALERT = 100
    CRIT = 200
    ERROR = 300
    WARN = 400
    NOTICE = 500
    INFO = 600
    DEBUG = 700
    NOTSET = 800


LOGURU_LEVELS = {
    LogLevel.FATAL: "CRITICAL",
    LogLevel.ALERT: "CRITICAL",
    LogLevel.CRIT: "CRITICAL",
    LogLevel.ERROR: "ERROR",
    LogLevel.WARN: "WARNING",
    LogLevel.NOTICE: "SUCCESS",
    LogLevel.INFO: "INFO",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.NOTSET: "TRACE",
}

PRIORITY_FROM_LOGURU = {
    "CRITICAL": LogLevel.CRIT,
    "ERROR": LogLevel.ERROR,
    "WARNING": LogLevel.WARN,
    "SUCCESS": LogLevel.NOTICE,
    "INFO": LogLevel.INFO,
    "DEBUG": LogLevel.DEBUG,
    "TRACE": LogLevel.NOTSET,
}


@dataclass(frozen=True)
class LoggingEventData:
    category: str
    priority: int
    priority_name: str
    timestamp: str
    ndc: str
    thread_name: str
    message: str

    @classmethod
    def from_record(cls, record):
        priority = PRIORITY_FROM_LOGURU.get(record["level"].name, LogLevel.NOTSET)
        return cls(
            category=record["name"] or "",
            priority=int(priority),
            priority_name=priority.name,
            timestamp=record["time"].isoformat(),
            ndc=str(record["extra"].get("ndc", "(none)")),
            thread_name=record["thread"].name,
            message=record["message"],
        )


class LoggingEventHandler:
    def on_log_event(self, event_data:LoggingEventData):
        """Needs reimplementing in subclass"""
        raise NotImplementedError

    def sink(self, message):
        self.on_log_event(LoggingEventData.from_record(message.record))


class DeviceArrivalMonitor(CallbackThread):
    """Polls the system device list and reports arrivals and removals

    Handlers registered with interface_id None receive events from every
    interface, the others only from their own interface.
    """
    def __init__(self, system, interval=0.5):
        super().__init__(name="device-arrival-monitor")
        self.system = system
        self.interval = interval
        self.handlers = []
        self.handler_lock = threading.Lock()
        self.known = None
        self.register(self.dispatch)

    def register_handler(self, handler, interface_id=None):
        with self.handler_lock:
            self.handlers.append((handler, interface_id))
        if not self.is_running():
            # changes made while nobody was listening are not reported
            self.known = self.system.scan_serials()
        self.start_cb_thread()

    def unregister_handler(self, handler, interface_id=None):
        with self.handler_lock:
            before = len(self.handlers)
            self.handlers = [(h, i) for h, i in self.handlers if not (h is handler and i == interface_id)]
            removed = before != len(self.handlers)
            empty = not self.handlers
        if empty:
            self.stop()
        return removed

    def stop(self):
        self.stop_cb_thread()

    def get_data(self):
        if self.stop_event.wait(self.interval):
            return None
        return self.poll()

    def poll(self):
        """Rescan once and return a list of (kind, interface_id, serial) changes"""
        current = self.system.scan_serials()
        previous = self.known or {}
        events = []
        for interface_id in sorted(set(previous) | set(current)):
            before = previous.get(interface_id, set())
            after = current.get(interface_id, set())
            for serial in sorted(after - before):
                events.append(("arrival", interface_id, serial))
            for serial in sorted(before - after):
                events.append(("removal", interface_id, serial))
        self.known = current
        if events:
            logger.debug(f"device list changed: {events}")
            return events
        return None

    def dispatch(self, events):
        with self.handler_lock:
            handlers = list(self.handlers)
        for kind, interface_id, serial in events:
            for handler, handler_interface in handlers:
                if handler_interface is not None and handler_interface != interface_id:
                    continue
                try:
                    if kind == "arrival":
                        handler.on_device_arrival(serial)
                    else:
                        handler.on_device_removal(serial)
                except Exception as e:
                    logger.exception(f"interface event handler failed on {kind} of {serial}: {e}")
