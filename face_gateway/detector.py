"""
Face detection and embedding backends.

The gateway only depends on the ``FaceDetector`` protocol: ``load()`` once at
boot, then ``detect(image)`` per request, returning the best face or ``None``.
The default backend runs OpenCV's YuNet detector and SFace recognizer.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import cv2
import numpy as np
from skimage.transform import SimilarityTransform

logger = logging.getLogger(__name__)

# Reference landmark positions for a 112x112 aligned face (ArcFace/SFace template)
DEST_LANDMARKS = np.array([
    [38.2946, 51.6963],
    [73.5318, 51.5014],
    [56.0252, 71.7366],
    [41.5493, 92.3655],
    [70.7299, 92.2041]
], dtype=np.float32)

ALIGNED_FACE_SIZE = 112


@dataclass(frozen=True)
class DetectorConfig:
    input_size: int = 160
    score_threshold: float = 0.5
    nms_threshold: float = 0.3
    top_k: int = 5000


@dataclass(frozen=True)
class FaceResult:
    descriptor: Tuple[float, ...]
    confidence: float

    @property
    def dimensions(self) -> int:
        return len(self.descriptor)


class FaceDetector(Protocol):
    """Opaque detection capability used by the gateway."""

    def load(self) -> None:
        """Load model weights. Raises on failure."""
        ...

    def detect(self, image: np.ndarray) -> Optional[FaceResult]:
        """Return the best face in a BGR image, or None when no face is found."""
        ...


def letterbox(image: np.ndarray, input_size: int) -> Tuple[np.ndarray, float, Tuple[int, int]]:
    """
    Resize an image to fit a square canvas of ``input_size`` while keeping the
    aspect ratio, padding the rest with black.

    Returns the padded image, the scale factor and the (left, top) offset.
    """
    h, w = image.shape[:2]
    if h == 0 or w == 0:
        raise ValueError("Input image has zero height or width")

    scale = min(input_size / w, input_size / h)
    new_w, new_h = max(1, int(w * scale)), max(1, int(h * scale))
    resized = cv2.resize(image, (new_w, new_h))

    padded = np.zeros((input_size, input_size, 3), dtype=np.uint8)
    top = (input_size - new_h) // 2
    left = (input_size - new_w) // 2
    padded[top:top + new_h, left:left + new_w] = resized

    return padded, scale, (left, top)


def align_face(image: np.ndarray, landmarks: np.ndarray) -> np.ndarray:
    """
    Warp a face onto the 112x112 template using a similarity transform
    estimated from its five landmarks (eyes, nose tip, mouth corners).
    """
    tform = SimilarityTransform()
    if not tform.estimate(landmarks.astype(np.float32), DEST_LANDMARKS):
        raise ValueError("Could not estimate face alignment from landmarks")
    M = tform.params[0:2, :]
    return cv2.warpAffine(image, M, (ALIGNED_FACE_SIZE, ALIGNED_FACE_SIZE), borderValue=0.0)


def select_best_face(faces: Optional[np.ndarray]) -> Optional[np.ndarray]:
    """Pick the highest scoring row of a YuNet detection matrix."""
    if faces is None or len(faces) == 0:
        return None
    return faces[int(np.argmax(faces[:, -1]))]


class OpenCVFaceDetector:
    """YuNet face detection followed by SFace embedding, both via OpenCV DNN."""

    def __init__(self, detection_model_path: str, recognition_model_path: str,
                 config: Optional[DetectorConfig] = None):
        self.detection_model_path = detection_model_path
        self.recognition_model_path = recognition_model_path
        self.config = config or DetectorConfig()
        self.face_detector = None
        self.face_recognizer = None

    def load(self):
        # Pre-check that model files exist to fail early
        if not os.path.exists(self.detection_model_path):
            raise FileNotFoundError(f"Detection model not found: {self.detection_model_path}")
        if not os.path.exists(self.recognition_model_path):
            raise FileNotFoundError(f"Recognition model not found: {self.recognition_model_path}")

        logger.info(f"Loading detection model: {self.detection_model_path}")
        self.face_detector = cv2.FaceDetectorYN.create(
            self.detection_model_path,
            "",
            (self.config.input_size, self.config.input_size),
            self.config.score_threshold,
            self.config.nms_threshold,
            self.config.top_k
        )

        logger.info(f"Loading recognition model: {self.recognition_model_path}")
        self.face_recognizer = cv2.FaceRecognizerSF.create(self.recognition_model_path, "")

    def _find_face(self, image: np.ndarray) -> Optional[Tuple[float, np.ndarray]]:
        """Run the detector and map the best face back to original image coordinates."""
        padded, scale, (offset_x, offset_y) = letterbox(image, self.config.input_size)
        _, faces = self.face_detector.detect(padded)

        best = select_best_face(faces)
        if best is None:
            return None

        landmarks = best[4:14].reshape(5, 2).copy()
        landmarks[:, 0] = (landmarks[:, 0] - offset_x) / scale
        landmarks[:, 1] = (landmarks[:, 1] - offset_y) / scale

        score = float(best[-1])
        return score, landmarks

    def detect(self, image: np.ndarray) -> Optional[FaceResult]:
        if self.face_detector is None or self.face_recognizer is None:
            raise RuntimeError("Face models not loaded")

        found = self._find_face(image)
        if found is None:
            return None
        score, landmarks = found

        aligned_face = align_face(image, landmarks)
        descriptor = self.face_recognizer.feature(aligned_face).flatten().astype(np.float32)

        return FaceResult(
            descriptor=tuple(float(v) for v in descriptor),
            confidence=max(0.0, min(1.0, score))
        )


def create_default_detector(settings) -> OpenCVFaceDetector:
    config = DetectorConfig(
        input_size=settings.detector_input_size,
        score_threshold=settings.detector_score_threshold,
        nms_threshold=settings.detector_nms_threshold
    )
    return OpenCVFaceDetector(
        settings.face_detection_path,
        settings.face_recognition_path,
        config=config
    )
