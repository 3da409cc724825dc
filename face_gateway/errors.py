"""
Request-level failures of the embeddings endpoint and the HTTP responses they map to.
"""

from typing import Optional


class GatewayError(Exception):
    status_code = 500
    message = "Internal server error"
    # Whether the JSON body carries "success": false next to the error
    reports_success = True

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_content(self) -> dict:
        if self.reports_success:
            return {"success": False, "error": self.message}
        return {"error": self.message}


class ModelsNotReadyError(GatewayError):
    status_code = 503
    message = "Models are still loading. Please try again."
    reports_success = False


class NoImageProvidedError(GatewayError):
    status_code = 400
    message = "No image file provided. Please upload an image."
    reports_success = False


class UnsupportedMediaTypeError(GatewayError):
    status_code = 400
    message = "Only image files are allowed!"
    reports_success = False


class NoFaceDetectedError(GatewayError):
    status_code = 404
    message = "No face detected in the image"


class ImageProcessingError(GatewayError):
    status_code = 500
