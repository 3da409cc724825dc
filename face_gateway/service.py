"""
Embedding service: readiness gate, upload staging and the per-request
detection flow behind POST /embeddings.
"""

import logging
import os
import tempfile
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional, Union

import cv2
import numpy as np
from starlette.datastructures import UploadFile
from starlette.concurrency import run_in_threadpool

from .detector import FaceDetector, FaceResult
from .errors import (
    ImageProcessingError,
    ModelsNotReadyError,
    NoFaceDetectedError,
    NoImageProvidedError,
    UnsupportedMediaTypeError,
)
from .gate import ReadinessGate

logger = logging.getLogger(__name__)


@contextmanager
def staged_upload(data: bytes, upload_dir: str, suffix: str = "") -> Iterator[str]:
    """
    Write uploaded bytes to a uniquely named file in ``upload_dir`` and yield
    its path. The file is removed when the block exits, however it exits.
    """
    os.makedirs(upload_dir, exist_ok=True)
    fd, path = tempfile.mkstemp(dir=upload_dir, suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        yield path
    finally:
        if os.path.exists(path):
            os.remove(path)


def is_image_upload(upload: UploadFile) -> bool:
    return (upload.content_type or "").startswith("image/")


def load_image(path: str) -> np.ndarray:
    """Decode an image file to a BGR array"""
    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError("Failed to decode image")
    return image


class FaceEmbeddingService:
    def __init__(self, detector: FaceDetector, upload_dir: str = "uploads"):
        self.start_time = time.time()
        self.detector = detector
        self.upload_dir = upload_dir
        self.gate = ReadinessGate()
        self._load_lock = threading.Lock()

    @property
    def models_loaded(self) -> bool:
        return self.gate.is_ready()

    def load_models(self):
        """
        Load the face models once and open the gate. Any failure is re-raised
        as RuntimeError so the caller can abort startup.
        """
        with self._load_lock:
            if self.gate.is_ready():
                return

            logger.info("Loading models...")
            try:
                self.detector.load()
                os.makedirs(self.upload_dir, exist_ok=True)
            except Exception as e:
                logger.error(f"Error loading models: {e}", exc_info=True)
                raise RuntimeError("Face model initialization failed.") from e

            self.gate.mark_ready()
            logger.info("Models loaded successfully!")

    def ensure_ready(self):
        if not self.gate.is_ready():
            raise ModelsNotReadyError()

    def _process_upload(self, data: bytes, suffix: str) -> Optional[FaceResult]:
        try:
            with staged_upload(data, self.upload_dir, suffix=suffix) as image_path:
                image = load_image(image_path)
                return self.detector.detect(image)
        except Exception as e:
            logger.error(f"Face embedding extraction failed: {e}", exc_info=True)
            raise ImageProcessingError(f"Error processing image: {e}") from e

    async def extract_embeddings(self, upload: Union[UploadFile, str, None]) -> FaceResult:
        """
        Run the full embeddings flow for one form value. Anything other than
        an uploaded file (absent field, plain text field) counts as no image.
        """
        self.ensure_ready()

        if not isinstance(upload, UploadFile):
            raise NoImageProvidedError()

        if not is_image_upload(upload):
            logger.info(f"Rejected upload with content type {upload.content_type!r}")
            raise UnsupportedMediaTypeError()

        data = await upload.read()
        suffix = os.path.splitext(upload.filename or "")[1]
        if not suffix[1:].isalnum():
            suffix = ""

        start_time = time.time()
        result = await run_in_threadpool(self._process_upload, data, suffix)
        processing_time = int((time.time() - start_time) * 1000)

        if result is None:
            logger.info(f"No face detected ({processing_time}ms)")
            raise NoFaceDetectedError()

        logger.info(f"Extracted {result.dimensions}-D descriptor "
                    f"(confidence {result.confidence:.3f}, {processing_time}ms)")
        return result
