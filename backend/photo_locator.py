"""
Client photo location and cropping.

The portrait is located with a single-face detector and cropped with padding.
Without a face, the whole page is returned downscaled so staff can crop it by hand.
"""
import base64
import logging
import math
import re
import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional, Union

import cv2
import numpy as np

from config import (
    PHOTO_FACE_JPEG_QUALITY,
    PHOTO_FACE_PADDING,
    PHOTO_FALLBACK_JPEG_QUALITY,
    PHOTO_MAX_DIMENSION,
)

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r'^data:image/[\w.+-]+;base64,', re.IGNORECASE)


@dataclass
class FaceBox:
    x: float
    y: float
    width: float
    height: float


class FaceDetector:
    """
    Single-face detector backed by OpenCV's frontal face Haar cascade.
    The cascade is loaded once, on first use, and reused afterwards.
    """

    CASCADE_FILE = 'haarcascade_frontalface_default.xml'

    def __init__(self, cascade_path: Optional[str] = None):
        self.cascade_path = cascade_path or (cv2.data.haarcascades + self.CASCADE_FILE)
        self._cascade = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._cascade is not None

    def load(self):
        """Load the detection model; later calls are no-ops"""
        if self._cascade is not None:
            return

        with self._lock:
            if self._cascade is not None:
                return

            cascade = cv2.CascadeClassifier(self.cascade_path)
            if cascade.empty():
                raise RuntimeError(f"Failed to load face detection model: {self.cascade_path}")

            self._cascade = cascade
            logger.info("Face detection model loaded")

    def detect(self, image: np.ndarray) -> Optional[FaceBox]:
        """Return the most prominent face in the image, or None"""
        self.load()

        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
        # one cascade serves every worker thread
        with self._lock:
            faces = self._cascade.detectMultiScale(gray, scaleFactor=1.1, minNeighbors=5, minSize=(30, 30))

        if len(faces) == 0:
            return None

        x, y, w, h = max(faces, key=lambda f: f[2] * f[3])
        return FaceBox(float(x), float(y), float(w), float(h))


@lru_cache()
def get_face_detector() -> FaceDetector:
    """Process-wide detector instance"""
    return FaceDetector()


def _js_round(value: float) -> int:
    """Round half up"""
    return int(math.floor(value + 0.5))


def decode_image(image: Union[bytes, str]) -> Optional[np.ndarray]:
    """Decode raw image bytes or a base64 data-URI into a BGR array"""
    if isinstance(image, str):
        try:
            image = base64.b64decode(DATA_URI_RE.sub('', image.strip()), validate=False)
        except ValueError:
            return None

    if not image:
        return None

    nparr = np.frombuffer(image, np.uint8)
    return cv2.imdecode(nparr, cv2.IMREAD_COLOR)


def encode_data_uri(image: np.ndarray, quality: int) -> str:
    """Encode an image as a JPEG data-URI"""
    ok, buffer = cv2.imencode('.jpg', image, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise ValueError("JPEG encoding failed")
    return 'data:image/jpeg;base64,' + base64.b64encode(buffer.tobytes()).decode('utf-8')


def crop_face(image: np.ndarray, box: FaceBox, padding: float = PHOTO_FACE_PADDING) -> Optional[np.ndarray]:
    """Crop the face box grown by `padding` (half on each side), clamped to the image"""
    img_h, img_w = image.shape[:2]

    x = max(0.0, box.x - (box.width * padding) / 2)
    y = max(0.0, box.y - (box.height * padding) / 2)
    w = min(img_w - x, box.width * (1 + padding))
    h = min(img_h - y, box.height * (1 + padding))

    x0, y0 = int(x), int(y)
    x1, y1 = int(round(x + w)), int(round(y + h))
    if x1 <= x0 or y1 <= y0:
        return None

    return image[y0:y1, x0:x1]


def downscale(image: np.ndarray, max_dimension: int = PHOTO_MAX_DIMENSION) -> np.ndarray:
    """Shrink so neither side exceeds max_dimension, keeping aspect ratio"""
    h, w = image.shape[:2]

    if w <= max_dimension and h <= max_dimension:
        return image

    if w > h:
        new_w, new_h = max_dimension, _js_round(h * max_dimension / w)
    else:
        new_w, new_h = _js_round(w * max_dimension / h), max_dimension

    return cv2.resize(image, (max(1, new_w), max(1, new_h)), interpolation=cv2.INTER_AREA)


class PhotoLocator:
    """Locate the client's portrait on a visa or passport image."""

    def __init__(self, detector: Optional[FaceDetector] = None, max_dimension: int = PHOTO_MAX_DIMENSION):
        self._detector = detector
        self.max_dimension = max_dimension

    @property
    def detector(self) -> FaceDetector:
        if self._detector is None:
            self._detector = get_face_detector()
        return self._detector

    def extract_profile_photo(self, image_bytes: bytes) -> str:
        """
        Returns a JPEG data-URI of the detected face, or of the full image
        when no face is found. An unreadable image gives an empty string.
        """
        image = decode_image(image_bytes)
        if image is None:
            logger.warning("Could not load image for photo extraction")
            return ''

        try:
            box = self.detector.detect(image)
            if box is not None:
                face = crop_face(image, box)
                if face is not None:
                    logger.info("Face detected and cropped")
                    return encode_data_uri(face, PHOTO_FACE_JPEG_QUALITY)
        except Exception as e:
            logger.warning(f"Face detection failed, falling back to full image: {e}")

        logger.info("No face detected, using full image")
        try:
            return encode_data_uri(downscale(image, self.max_dimension), PHOTO_FALLBACK_JPEG_QUALITY)
        except ValueError as e:
            logger.warning(f"Could not encode client photo: {e}")
            return ''


def rotate_size(width: float, height: float, rotation: float) -> Dict[str, float]:
    """Bounding size of a width x height rectangle rotated by `rotation` degrees"""
    rot_rad = math.radians(rotation)
    return {
        'width': abs(math.cos(rot_rad) * width) + abs(math.sin(rot_rad) * height),
        'height': abs(math.sin(rot_rad) * width) + abs(math.cos(rot_rad) * height),
    }


def rotate_image(image: np.ndarray, rotation: float) -> np.ndarray:
    """Rotate clockwise by `rotation` degrees on a canvas grown to fit"""
    if rotation % 360 == 0:
        return image

    height, width = image.shape[:2]
    bounds = rotate_size(width, height, rotation)
    new_width, new_height = _js_round(bounds['width']), _js_round(bounds['height'])

    # OpenCV angles are counter-clockwise
    matrix = cv2.getRotationMatrix2D((width / 2, height / 2), -rotation, 1.0)
    matrix[0, 2] += (new_width / 2) - width / 2
    matrix[1, 2] += (new_height / 2) - height / 2

    return cv2.warpAffine(image, matrix, (new_width, new_height),
                          borderMode=cv2.BORDER_CONSTANT,
                          borderValue=(255, 255, 255))


def crop_photo(
    image_source: Union[bytes, str],
    pixel_crop: Dict[str, float],
    rotation: float = 0,
    flip_horizontal: bool = False,
    flip_vertical: bool = False,
) -> str:
    """
    Cut a user-selected region out of a photo.

    Args:
        image_source: Image bytes or a data-URI
        pixel_crop: {'x', 'y', 'width', 'height'} in pixels of the rotated image
        rotation: Clockwise rotation in degrees applied before cropping
        flip_horizontal / flip_vertical: Mirror the image before cropping

    Returns:
        JPEG data-URI of the cropped region
    """
    image = decode_image(image_source)
    if image is None:
        raise ValueError("Could not load image to crop")

    image = rotate_image(image, rotation)
    if flip_horizontal and flip_vertical:
        image = cv2.flip(image, -1)
    elif flip_horizontal:
        image = cv2.flip(image, 1)
    elif flip_vertical:
        image = cv2.flip(image, 0)

    img_h, img_w = image.shape[:2]
    x0 = min(max(0, _js_round(pixel_crop['x'])), img_w)
    y0 = min(max(0, _js_round(pixel_crop['y'])), img_h)
    x1 = min(img_w, x0 + _js_round(pixel_crop['width']))
    y1 = min(img_h, y0 + _js_round(pixel_crop['height']))

    if x1 <= x0 or y1 <= y0:
        raise ValueError("Crop area is outside the image")

    return encode_data_uri(image[y0:y1, x0:x1], PHOTO_FACE_JPEG_QUALITY)
