from pathlib import Path

import numpy
import pytest
from astropy.io import fits

from pygevcam.api.device import ChunkData, Image
from pygevcam.api.errors import CameraError, ErrorCode
from pygevcam.imaging import VideoRecorder, convert, image_filename, read_image, save_image


def test_convert_mono():
    data = numpy.full((4, 6), 4095, dtype=numpy.uint16)
    mono8 = convert(data, "Mono12", "Mono8")
    assert mono8.dtype == numpy.uint8
    assert (mono8 == 255).all()
    mono16 = convert(numpy.full((4, 6), 255, dtype=numpy.uint8), "Mono8", "Mono16")
    assert (mono16 == 0xFF00).all()


def test_convert_colour():
    bayer = numpy.random.default_rng(1).integers(0, 255, (8, 8), dtype=numpy.uint8)
    bgr = convert(bayer, "BayerRG8", "BGR8")
    assert bgr.shape == (8, 8, 3)
    assert convert(bgr, "BGR8", "Mono8").shape == (8, 8)
    assert convert(bayer, "Mono8", "BGR8").shape == (8, 8, 3)


def test_convert_same_format_copies():
    data = numpy.zeros((2, 2), dtype=numpy.uint8)
    copy = convert(data, "Mono8", "Mono8")
    copy[0, 0] = 1
    assert data[0, 0] == 0


def test_convert_unsupported():
    with pytest.raises(CameraError) as excinfo:
        convert(numpy.zeros((2, 2), dtype=numpy.uint8), "Mono8", "BayerRG8")
    assert excinfo.value.code == ErrorCode.INVALID_PARAMETER


def test_image_convert_keeps_metadata():
    chunk = ChunkData(FrameID=7)
    image = Image(numpy.full((4, 4), 4095, dtype=numpy.uint16), "Mono12", frame_id=7, chunk_data=chunk)
    converted = image.convert("Mono8")
    assert converted.pixel_format == "Mono8"
    assert converted.frame_id == 7
    assert converted.chunk_data.get_int("FrameID") == 7
    assert image.pixel_format == "Mono12"
    assert repr(converted) == "<Image 7 4x4 Mono8>"


def test_image_filename(tmp_path):
    assert image_filename("Acquisition", "20000001", 4, "png", tmp_path) == tmp_path / "Acquisition-20000001-4.png"
    assert image_filename("Trigger", index=0, ext=".jpg") == Path("Trigger-0.jpg")
    assert image_filename("Video") == Path("Video.jpg")


def test_save_and_read_png(tmp_path):
    data = numpy.arange(64, dtype=numpy.uint16).reshape((8, 8)) * 1000
    path = save_image(data, tmp_path / "image.png")
    assert (read_image(path) == data).all()


def test_save_fits_with_header(tmp_path):
    data = numpy.arange(12, dtype=numpy.uint16).reshape((3, 4))
    path = save_image(data, tmp_path / "image.fits", header={"serial": "20000001"})
    assert (read_image(path) == data).all()
    assert fits.getheader(path)["SERIAL"] == "20000001"


def test_save_hdf5(tmp_path):
    data = numpy.ones((3, 4), dtype=numpy.uint8)
    path = save_image(data, tmp_path / "image.h5", header={"frame_id": 3})
    assert (read_image(path) == data).all()


def test_save_unknown_suffix(tmp_path):
    with pytest.raises(CameraError):
        save_image(numpy.zeros((2, 2), dtype=numpy.uint8), tmp_path / "image.xyz")


def test_read_missing_image(tmp_path):
    with pytest.raises(CameraError) as excinfo:
        read_image(tmp_path / "missing.png")
    assert excinfo.value.code == ErrorCode.IO


def test_video_recorder(tmp_path):
    frames = [numpy.full((48, 64), i*20, dtype=numpy.uint8) for i in range(5)]
    with VideoRecorder(tmp_path / "video", "mjpg", 10.0, 64, 48, quality=90) as recorder:
        for frame in frames:
            recorder.append(frame)
        with pytest.raises(CameraError):
            recorder.append(numpy.zeros((10, 10), dtype=numpy.uint8))
    assert recorder.count == 5
    assert recorder.path == tmp_path / "video.avi"
    assert recorder.path.stat().st_size > 0


def test_video_recorder_unknown_type(tmp_path):
    with pytest.raises(CameraError) as excinfo:
        VideoRecorder(tmp_path / "video", "gif", 10.0, 64, 48)
    assert excinfo.value.code == ErrorCode.INVALID_PARAMETER
