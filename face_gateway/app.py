#!/usr/bin/env python3
"""
Face Embeddings API - upload an image, get the descriptor of the best face in it
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException

from . import __version__
from .config import GatewaySettings
from .detector import create_default_detector
from .errors import GatewayError, NoImageProvidedError
from .service import FaceEmbeddingService

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# Models
class EmbeddingResponse(BaseModel):
    success: bool = True
    embeddings: List[float] = Field(..., description="Face descriptor vector")
    confidence: float = Field(..., description="Face detection confidence score")
    dimensions: int = Field(..., description="Length of the descriptor vector")


class ErrorResponse(BaseModel):
    success: Optional[bool] = Field(None, description="Present on processing failures")
    error: str


class HealthResponse(BaseModel):
    model_config = {"protected_namespaces": (), "populate_by_name": True}

    status: str = Field(..., description="Service status")
    models_loaded: bool = Field(..., alias="modelsLoaded", description="Whether the face models finished loading")


# The /embeddings form is read from the raw request, so describe it for the docs
EMBEDDINGS_REQUEST_BODY = {
    "requestBody": {
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {"image": {"type": "string", "format": "binary"}},
                }
            }
        }
    }
}


def get_embedding_service(request: Request) -> FaceEmbeddingService:
    return request.app.state.embedding_service


def create_app(service: Optional[FaceEmbeddingService] = None,
               settings: Optional[GatewaySettings] = None) -> FastAPI:
    """
    Build the FastAPI application around an embedding service.

    Models are loaded in the lifespan hook before the server accepts traffic;
    a load failure propagates and aborts startup.
    """
    settings = settings or GatewaySettings.from_env()
    logging.getLogger("face_gateway").setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    if service is None:
        service = FaceEmbeddingService(
            create_default_detector(settings),
            upload_dir=settings.upload_dir
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application startup...")
        app.state.embedding_service.load_models()
        yield
        logger.info("Application shutdown.")

    app = FastAPI(
        title="Face Embeddings API",
        description="Extracts face descriptors from uploaded images",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.embedding_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")
        return response

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    # Routes
    @app.get("/health", response_model=HealthResponse)
    async def health(service: FaceEmbeddingService = Depends(get_embedding_service)):
        """Health check endpoint"""
        return HealthResponse(status="healthy", modelsLoaded=service.models_loaded)

    @app.post(
        "/embeddings",
        response_model=EmbeddingResponse,
        openapi_extra=EMBEDDINGS_REQUEST_BODY,
        responses={
            400: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
            503: {"model": ErrorResponse},
        }
    )
    async def create_embeddings(request: Request,
                                service: FaceEmbeddingService = Depends(get_embedding_service)):
        """Extract the face descriptor of the best face in an uploaded image"""
        # The form is parsed by hand so the gate answers before any body validation
        service.ensure_ready()

        try:
            form = await request.form()
        except HTTPException:
            # Malformed multipart body
            raise NoImageProvidedError()

        try:
            result = await service.extract_embeddings(form.get("image"))
        finally:
            await form.close()

        return EmbeddingResponse(
            embeddings=list(result.descriptor),
            confidence=result.confidence,
            dimensions=result.dimensions
        )

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {"message": "Face Embeddings API", "version": __version__, "status": "running"}

    return app


app = create_app()
