from pygevcam.logger import logger
from pygevcam.api.errors import CameraError, ErrorCode
from pygevcam.api.device import CameraList, ChunkData, Image, ImageStatus, LibraryVersion
from pygevcam.api.events import (DeviceEventHandler, ImageEventHandler, InterfaceEventHandler,
                                 LoggingEventData, LoggingEventHandler, LogLevel)
from pygevcam.api.nodes import AccessMode, NodeType

BACKENDS = ("aravis", "sim")


def get_system(backend="sim", config=None):
    """Return the system singleton of a backend, release it with release_instance()"""
    if backend == "sim":
        from pygevcam.api.sim import SimSystem
        return SimSystem.get_instance(config)
    if backend == "aravis":
        # only import gi when the hardware backend is asked for
        from pygevcam.api.aravis import AravisSystem
        return AravisSystem.get_instance(config)
    raise CameraError(f"Unknown backend {backend}, use one of {BACKENDS}", ErrorCode.INVALID_PARAMETER)


class OpenSystem:
    def __init__(self, backend="sim", config=None):
        self.backend = backend
        self.config = config

    def __enter__(self):
        self.system = get_system(self.backend, self.config)
        return self.system

    def __exit__(self, exc_type, exc_value, traceback):
        logger.debug("Releasing the system")
        self.system.release_instance()
        return False


class InitCamera:
    def __init__(self, camera):
        self.camera = camera

    def __enter__(self):
        self.camera.init()
        return self.camera

    def __exit__(self, exc_type, exc_value, traceback):
        if self.camera.is_valid():
            self.camera.deinit()
        return False

