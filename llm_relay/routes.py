from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .auth import TenantContext, require_auth
from .deps import close_provider_state, get_gateway, init_provider_state
from .errors import GatewayError
from .logging_config import logger, setup_logging
from .models import (
    CanonicalImageRequest,
    CanonicalRequest,
    GenerateResponse,
    Modality,
    ModelsResponse,
)
from .redis_client import close_redis_client
from .services.gateway_service import LlmGateway


class HealthResponse(BaseModel):
    status: str = "ok"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("llm_relay starting")
    await init_provider_state(app)
    try:
        yield
    finally:
        await close_provider_state(app)
        await close_redis_client()
    logger.info("llm_relay stopped")


def create_app() -> FastAPI:
    app = FastAPI(title="LLM Relay", version="0.1.0", lifespan=lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Basic request/response logging middleware; Authorization and API key
        headers are redacted.
        """
        client_host = request.client.host if request.client else "-"
        headers_for_log = {}
        for k, v in request.headers.items():
            if k.lower() in ("authorization", "x-api-key"):
                headers_for_log[k] = "***REDACTED***"
            else:
                headers_for_log[k] = v

        logger.info(
            "HTTP %s %s from %s, headers=%s",
            request.method,
            request.url.path,
            client_host,
            headers_for_log,
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error while processing %s %s",
                request.method,
                request.url.path,
            )
            raise
        logger.info(
            "HTTP %s %s -> %s", request.method, request.url.path, response.status_code
        )
        return response

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        if exc.status >= 500:
            logger.error(
                "%s %s failed: %s (%s)",
                request.method,
                request.url.path,
                exc.message,
                exc.code,
            )
        else:
            logger.warning(
                "%s %s rejected: %s (%s)",
                request.method,
                request.url.path,
                exc.message,
                exc.code,
            )
        return JSONResponse(
            status_code=exc.status,
            content=exc.to_response().model_dump(),
        )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse()

    @app.get("/v1/llm/models", response_model=ModelsResponse)
    async def list_models(
        modality: Optional[Modality] = Query(default=None),
        tenant: TenantContext = Depends(require_auth),
        gateway: LlmGateway = Depends(get_gateway),
    ) -> ModelsResponse:
        return ModelsResponse(models=gateway.get_models(modality))

    @app.post(
        "/v1/llm/generate-text",
        response_model=GenerateResponse,
    )
    async def generate_text(
        payload: CanonicalRequest,
        tenant: TenantContext = Depends(require_auth),
        gateway: LlmGateway = Depends(get_gateway),
    ) -> GenerateResponse:
        response = await gateway.generate_text(payload, tenant)
        return GenerateResponse(response=response)

    @app.post(
        "/v1/llm/generate-structured-data",
        response_model=GenerateResponse,
    )
    async def generate_structured_data(
        payload: CanonicalRequest,
        tenant: TenantContext = Depends(require_auth),
        gateway: LlmGateway = Depends(get_gateway),
    ) -> GenerateResponse:
        response = await gateway.generate_structured_data(payload, tenant)
        return GenerateResponse(response=response)

    @app.post(
        "/v1/llm/generate-image",
        response_model=GenerateResponse,
    )
    async def generate_image(
        payload: CanonicalImageRequest,
        tenant: TenantContext = Depends(require_auth),
        gateway: LlmGateway = Depends(get_gateway),
    ) -> GenerateResponse:
        response = await gateway.generate_image(payload, tenant)
        return GenerateResponse(response=response)

    return app


__all__ = ["create_app"]
