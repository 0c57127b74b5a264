import pytest

from pygevcam.config import load_config
from pygevcam.api import get_system
from pygevcam.api.sim import SimSystem
from pygevcam.utils import deep_update


@pytest.fixture
def config(tmp_path):
    """Sim backend, nothing waits for Enter and images go to tmp_path"""
    return load_config(
        backend="sim",
        interactive=False,
        output_dir=str(tmp_path),
        num_images=3,
        grab_timeout_ms=2000,
        monitor_interval=0.05,
        video={"num_images": 3, "type": "mjpg"},
    )


@pytest.fixture
def two_camera_config(config):
    return deep_update(config, {"sim": {"cameras": [{}, {}]}})


@pytest.fixture(autouse=True)
def release_sim_system():
    yield
    while SimSystem._instance is not None:
        SimSystem._instance.release_instance()


@pytest.fixture
def system(config):
    system = get_system("sim", config)
    yield system
    if system.is_in_use():
        system.release_instance()


@pytest.fixture
def camera(system):
    cam = system.get_cameras()[0]
    cam.init()
    yield cam
    if cam.is_valid() and cam.is_initialized():
        cam.deinit()
