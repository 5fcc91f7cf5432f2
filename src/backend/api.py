"""FastAPI application for the haircut generation service."""

from __future__ import annotations

import base64
import binascii
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.generation_service import ImageGenerationError, generation_service
from core.config import MEGABYTE, get_max_body_size_mb
from core.encoding import strip_data_url_prefix
from core.schemas import GenerationRequest, GenerationResponse

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Help My Barber API",
    description="Generates haircut reference images from a photo and a description",
    version="1.0.0",
)

# Add CORS middleware for browser clients
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Helper Functions
# ============================================================================


def failure_response(status_code: int, message: str) -> JSONResponse:
    """JSON error body in the same shape as a successful response."""
    return JSONResponse(
        status_code=status_code,
        content=GenerationResponse.failed(message).model_dump(mode="json"),
    )


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """Refuse request bodies over the configured limit."""
    content_length = request.headers.get("content-length", "")
    if content_length.isdigit() and int(content_length) > get_max_body_size_mb() * MEGABYTE:
        return failure_response(413, "Request body too large")
    return await call_next(request)


# ============================================================================
# Generation Endpoints
# ============================================================================


@app.post("/api/generate", response_model=GenerationResponse)
async def generate_haircut_images(request: GenerationRequest):
    """Generate a front view, or side and back views, of the requested haircut."""
    try:
        image_data = base64.b64decode(
            strip_data_url_prefix(request.image_data), validate=True
        )
    except binascii.Error as e:
        logger.warning("Invalid image data: %s", e)
        return failure_response(400, "Invalid image data")

    if not image_data:
        return failure_response(400, "Invalid image data")

    try:
        variations = await generation_service.generate_haircut_images(
            request.prompt,
            image_data,
            generate_angles=request.generate_angles,
        )
    except ImageGenerationError as e:
        logger.error("Image generation failed: %s", e)
        return failure_response(500, "Failed to generate images")

    return GenerationResponse(success=True, variations=variations)


# ============================================================================
# Health Check
# ============================================================================


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Help My Barber API",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    from dotenv import load_dotenv

    from core.config import configure_logging, get_api_host, get_api_port

    load_dotenv()
    configure_logging()
    uvicorn.run(app, host=get_api_host(), port=get_api_port())
