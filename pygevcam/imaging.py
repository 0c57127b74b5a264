"""
Pixel format conversion, image files and video files

Images are numpy arrays (height, width) for mono and bayer formats and
(height, width, 3) for BGR8. Files are written with cv2, astropy (fits)
or h5py (hdf5) depending on the suffix.
"""

from pathlib import Path

import cv2
import h5py
import numpy
from astropy.io import fits

from pygevcam.logger import logger
from pygevcam.api.errors import CameraError, ErrorCode
from pygevcam.utils import get_datetime_stamp

MONO_BITS = {
    "Mono8": 8,
    "Mono10": 10,
    "Mono12": 12,
    "Mono14": 14,
    "Mono16": 16,
}

# opencv names bayer codes from the second row, so they are shifted by one
BAYER_TO_BGR = {
    "BayerRG8": cv2.COLOR_BayerBG2BGR,
    "BayerBG8": cv2.COLOR_BayerRG2BGR,
    "BayerGR8": cv2.COLOR_BayerGB2BGR,
    "BayerGB8": cv2.COLOR_BayerGR2BGR,
}

CV2_SUFFIXES = (".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff")
FITS_SUFFIXES = (".fits", ".fit")
HDF5_SUFFIXES = (".hdf5", ".h5")


def convert(data, from_format, to_format):
    """Return data converted from one pixel format to another as a new array"""
    if from_format == to_format:
        return numpy.array(data, copy=True)

    if from_format in BAYER_TO_BGR:
        bgr = cv2.cvtColor(data, BAYER_TO_BGR[from_format])
        if to_format == "BGR8":
            return bgr
        if to_format == "Mono8":
            return cv2.cvtColor(bgr, cv2.COLOR_BGR2GRAY)
    elif from_format == "BGR8" and to_format == "Mono8":
        return cv2.cvtColor(data, cv2.COLOR_BGR2GRAY)
    elif from_format in MONO_BITS:
        bits = MONO_BITS[from_format]
        if to_format == "Mono8":
            return (numpy.asarray(data, dtype=numpy.uint16) >> (bits - 8)).astype(numpy.uint8)
        if to_format == "Mono16":
            return numpy.asarray(data, dtype=numpy.uint16) << (16 - bits)
        if to_format == "BGR8":
            return cv2.cvtColor(convert(data, from_format, "Mono8"), cv2.COLOR_GRAY2BGR)

    raise CameraError(f"Conversion from {from_format} to {to_format} not supported", ErrorCode.INVALID_PARAMETER)


def image_filename(prefix, serial="", index=None, ext="jpg", output_dir="."):
    """Prefix-<serial>-<index>.<ext>, the serial and index parts are left out when empty"""
    parts = [prefix]
    if serial:
        parts.append(str(serial))
    if index is not None:
        parts.append(str(index))
    return Path(output_dir) / f"{'-'.join(parts)}.{ext.lstrip('.')}"


def save_image(data, path, header=None):
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in CV2_SUFFIXES:
        if not cv2.imwrite(str(path), data):
            raise CameraError(f"Unable to write image to {path}", ErrorCode.IO)
    elif suffix in FITS_SUFFIXES:
        hdr = fits.Header()
        hdr["DATE"] = get_datetime_stamp()
        for key, value in (header or {}).items():
            hdr[key[:8].upper()] = value
        fits.writeto(path, data, header=hdr, overwrite=True)
    elif suffix in HDF5_SUFFIXES:
        with h5py.File(path, "w") as file:
            dataset = file.create_dataset("images", numpy.shape(data), dtype=data.dtype, data=data)
            for key, value in (header or {}).items():
                dataset.attrs[key] = value
    else:
        raise CameraError(f"Unknown image file type {suffix}", ErrorCode.INVALID_PARAMETER)
    logger.debug(f"image saved at {path}")
    return path


def read_image(path):
    """Read back a file written by save_image"""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in FITS_SUFFIXES:
        return fits.getdata(path)
    if suffix in HDF5_SUFFIXES:
        with h5py.File(path, "r") as file:
            return file["images"][()]
    data = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if data is None:
        raise CameraError(f"Unable to read image from {path}", ErrorCode.IO)
    return data


VIDEO_TYPES = {
    # fourcc, file suffix
    "uncompressed": (0, ".avi"),
    "mjpg": ("MJPG", ".avi"),
    "h264": ("avc1", ".mp4"),
}


class VideoRecorder:
    """Appends frames to a video file through cv2.VideoWriter

    quality applies to mjpg, bitrate to h264 where the opencv build exposes it.
    """
    def __init__(self, file_base, video_type, frame_rate, width, height, quality=75, bitrate=1000000,
                 is_color=True):
        if video_type not in VIDEO_TYPES:
            raise CameraError(f"Unknown video type {video_type}, use one of {list(VIDEO_TYPES)}",
                              ErrorCode.INVALID_PARAMETER)
        fourcc, suffix = VIDEO_TYPES[video_type]
        if isinstance(fourcc, str):
            fourcc = cv2.VideoWriter_fourcc(*fourcc)
        self.path = Path(f"{file_base}{suffix}")
        self.video_type = video_type
        self.size = (int(width), int(height))
        self.is_color = is_color
        self.count = 0
        self.writer = cv2.VideoWriter(str(self.path), fourcc, float(frame_rate), self.size, is_color)
        if not self.writer.isOpened():
            raise CameraError(f"Unable to open {video_type} video file {self.path}", ErrorCode.IO)
        if video_type == "mjpg":
            self.writer.set(cv2.VIDEOWRITER_PROP_QUALITY, float(quality))
        elif video_type == "h264":
            logger.debug(f"h264 video at {bitrate} bit/s requested, opencv chooses the encoder rate")
        logger.debug(f"opened {video_type} video {self.path} at {frame_rate} fps")

    def append(self, data):
        if (data.shape[1], data.shape[0]) != self.size:
            raise CameraError(f"Frame size {data.shape[1]}x{data.shape[0]} does not match video size {self.size}",
                              ErrorCode.INVALID_PARAMETER)
        if self.is_color and data.ndim == 2:
            data = cv2.cvtColor(data, cv2.COLOR_GRAY2BGR)
        self.writer.write(data)
        self.count += 1

    def close(self):
        if self.writer is not None:
            self.writer.release()
            self.writer = None
            logger.debug(f"closed video {self.path} after {self.count} frames")

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
        return False
