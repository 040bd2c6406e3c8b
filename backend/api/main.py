"""
FastAPI main application.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import API_V1_PREFIX, CORS_ORIGINS, LOG_LEVEL
from core.config_validator import ConfigurationError, config_validator
from core.exceptions import OrchestrationError
from core.pipeline import pipeline
from api.errors import orchestration_error_handler
from api.routes import materials

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Learning Material API",
    description="Sentence splitting, paragraph titles, explanations and vocabulary for English learners",
    version="2.0.0",
)


@app.on_event("startup")
async def validate_configuration():
    """Validate configuration on application startup."""
    logger.info("Validating configuration...")

    try:
        validation_result = config_validator.require_valid()
    except ConfigurationError as e:
        for warning in e.warnings:
            logger.warning(f"Configuration warning: {warning}")
        for error in e.errors:
            logger.error(f"Configuration error: {error}")
        logger.critical("Application startup aborted due to configuration errors")
        raise SystemExit(1) from e

    for warning in validation_result["warnings"]:
        logger.warning(f"Configuration warning: {warning}")
    logger.info("Configuration validated successfully")


@app.on_event("shutdown")
async def close_client():
    await pipeline.aclose()


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(OrchestrationError, orchestration_error_handler)

# Include routers
app.include_router(materials.router, prefix=f"{API_V1_PREFIX}/materials", tags=["materials"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Learning Material API", "version": "2.0.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
