"""
Runtime configuration for the face embeddings gateway, read from the environment.
"""

import os

from pydantic import BaseModel, Field


class GatewaySettings(BaseModel):
    models_dir: str = Field('models', description="Directory holding the model files, relative to the working directory")
    face_detection_model: str = Field('face_detection_yunet_2023mar.onnx', description="Detector model file name")
    face_recognition_model: str = Field('face_recognition_sface_2021dec.onnx', description="Recognizer model file name")
    upload_dir: str = Field('uploads', description="Directory where uploads are staged")
    detector_input_size: int = Field(160, description="Square input resolution fed to the detector")
    detector_score_threshold: float = Field(0.5, description="Minimum detection confidence")
    detector_nms_threshold: float = Field(0.3, description="Detector NMS IoU threshold")
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "info"

    @property
    def face_detection_path(self) -> str:
        return os.path.join(self.models_dir, self.face_detection_model)

    @property
    def face_recognition_path(self) -> str:
        return os.path.join(self.models_dir, self.face_recognition_model)

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        """Build settings from environment variables, falling back to defaults."""
        env = {
            'models_dir': os.getenv('MODELS_DIR'),
            'face_detection_model': os.getenv('FACE_DETECTION_MODEL'),
            'face_recognition_model': os.getenv('FACE_RECOGNITION_MODEL'),
            'upload_dir': os.getenv('UPLOAD_DIR'),
            'detector_input_size': os.getenv('DETECTOR_INPUT_SIZE'),
            'detector_score_threshold': os.getenv('DETECTOR_SCORE_THRESHOLD'),
            'detector_nms_threshold': os.getenv('DETECTOR_NMS_THRESHOLD'),
            'host': os.getenv('HOST'),
            'port': os.getenv('PORT'),
            'log_level': os.getenv('LOG_LEVEL'),
        }
        return cls(**{key: value for key, value in env.items() if value is not None})
