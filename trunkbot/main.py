"""
trunkbot - FastAPI Application
Main entry point for the call ingestion service.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Response

from trunkbot.config.dispatch_config import DispatchConfigLoader
from trunkbot.config.settings import get_settings
from trunkbot.controllers.call_controller import router as call_router
from trunkbot.models.api_models import HealthCheckResponse
from trunkbot.services.call_service import CallService, CallSubmission
from trunkbot.utils.logger import get_module_logger, setup_logging
from trunkbot.utils.version import VERSION

# Setup logger for this module
logger = get_module_logger(__name__)

# Global state
call_service: Optional[CallService] = None
call_processing_semaphore: Optional[asyncio.Semaphore] = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    global call_service, call_processing_semaphore

    settings = get_settings()

    # Setup logging
    setup_logging(settings.log_level)

    # Fail fast on a broken dispatch configuration
    dispatch_config = DispatchConfigLoader(settings.dispatch_config_path).load_and_validate()

    # Initialize concurrency control
    call_processing_semaphore = asyncio.Semaphore(settings.max_concurrent_calls)
    logger.info(f"Call processing concurrency limit: {settings.max_concurrent_calls}")

    call_service = CallService(settings, dispatch_config)

    # Set up app state with callback to avoid circular imports
    app.state.call_service = call_service
    app.state.process_call_callback = process_call_background

    logger.info("trunkbot started successfully!")

    yield

    logger.info("trunkbot shutting down...")
    if call_service is not None:
        await call_service.close()
    call_service = None
    app.state.call_service = None
    logger.info("trunkbot shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="trunkbot",
    description="Trunked radio call transcription, classification and dispatch notifications",
    version=VERSION,
    lifespan=lifespan
)

app.include_router(call_router)


@app.get("/health", response_model=HealthCheckResponse)
async def health_check(response: Response) -> HealthCheckResponse:
    """
    Health check endpoint for fleet monitoring.

    Returns:
        - HTTP 200: Service initialized and accepting calls
        - HTTP 503: Service not initialized
    """

    timestamp = datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")

    if call_service is None:
        response.status_code = 503
        return HealthCheckResponse(
            status="degraded",
            service="trunkbot",
            version=VERSION,
            timestamp=timestamp,
            dedup_cache_size=0,
            integrations={},
        )

    return HealthCheckResponse(
        status="healthy",
        service="trunkbot",
        version=VERSION,
        timestamp=timestamp,
        dedup_cache_size=len(call_service.dedup_gate),
        integrations={
            "transcription": call_service.transcriber.name != "none",
            "slack": call_service.slack_service.enabled,
            "storage": call_service.storage_service.enabled,
            "relay": call_service.relay_service.enabled,
        },
        channels=sorted(call_service.dispatch_config.channel_ids),
    )


async def process_call_background(submission: CallSubmission) -> None:
    """Background task to process a call with error handling and concurrency control."""
    if call_processing_semaphore is None or call_service is None:
        logger.error(f"Cannot process call {submission.dedup_key}: services not initialized")
        return

    async with call_processing_semaphore:
        start_time = datetime.now()
        timeout_seconds = get_settings().call_processing_timeout

        try:
            await asyncio.wait_for(call_service.process_call(submission), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Call {submission.dedup_key} exceeded {timeout_seconds}s processing timeout")
        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            logger.exception(f"Call {submission.dedup_key} unexpected error after {duration:.2f}s: {str(e)}")


def run() -> None:
    """Console entry point."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "trunkbot.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
