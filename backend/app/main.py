# backend/app/main.py

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from .api import api_pricing
from .core.config import settings
from .core.observability import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Catering Pricing API", default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)


@app.get("/healthz", tags=["health"])
async def healthz():
    return {"status": "ok"}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors with details and log them for debugging."""
    errors = jsonable_encoder(exc.errors())
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
    )


api_prefix = settings.API_V1_STR  # usually something like "/api/v1"

app.include_router(api_pricing.router, prefix=f"{api_prefix}", tags=["pricing"])
