"""
Face Embeddings Gateway - HTTP service that turns an uploaded image into a face descriptor.
"""

__version__ = "1.0.0"

# Configure logging
import logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Import key components to the top level
from .app import app, create_app
from .detector import FaceDetector, FaceResult, OpenCVFaceDetector
from .service import FaceEmbeddingService

__all__ = [
    "app",
    "create_app",
    "FaceDetector",
    "FaceResult",
    "FaceEmbeddingService",
    "OpenCVFaceDetector",
]
