"""
Gateway orchestration for the public LLM operations.

Every generate call runs the same pipeline:

1. resolve the provider from the model id (unknown ids fail before any I/O);
2. count the call against the tenant's hourly budget;
3. call the vendor through its adapter, normalising any failure;
4. price the call from the vendor's reported usage;
5. convert USD to millicredits and report usage (log-and-continue).

Synthesised 400 responses (operation not supported by the model/vendor) are
returned as-is: they never reached a vendor, so they are neither priced nor
billed.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List

from llm_relay.auth import TenantContext
from llm_relay.errors import UnsupportedModelForCostError
from llm_relay.logging_config import logger
from llm_relay.models import (
    CanonicalImageRequest,
    CanonicalRequest,
    CanonicalResponse,
    Modality,
    UsageRecord,
)
from llm_relay.pricing import calculate_millicredits
from llm_relay.provider.base import ProviderAdapter
from llm_relay.routing.rate_limiter import HourlyRateLimiter
from llm_relay.routing.resolver import ModelResolver
from llm_relay.services.billing_service import (
    OPERATION_GENERATE_IMAGE,
    OPERATION_GENERATE_STRUCTURED_DATA,
    OPERATION_GENERATE_TEXT,
    BillingClient,
    build_sku_id,
    build_sku_name,
    report_usage_safely,
)

AdapterCall = Callable[[ProviderAdapter], Awaitable[CanonicalResponse]]


class LlmGateway:
    def __init__(
        self,
        resolver: ModelResolver,
        rate_limiter: HourlyRateLimiter,
        billing: BillingClient,
        *,
        price_per_credit: float | str,
    ) -> None:
        self.resolver = resolver
        self.rate_limiter = rate_limiter
        self.billing = billing
        self.price_per_credit = price_per_credit

    def get_models(self, modality: Modality | None = None) -> List[str]:
        return [m.id for m in self.resolver.list_models(modality)]

    async def generate_text(
        self, req: CanonicalRequest, tenant: TenantContext
    ) -> CanonicalResponse:
        return await self._run(
            OPERATION_GENERATE_TEXT,
            req.model,
            req.params.model_dump(exclude_none=True),
            tenant,
            lambda adapter: adapter.generate_text(req),
        )

    async def generate_structured_data(
        self, req: CanonicalRequest, tenant: TenantContext
    ) -> CanonicalResponse:
        return await self._run(
            OPERATION_GENERATE_STRUCTURED_DATA,
            req.model,
            req.params.model_dump(exclude_none=True),
            tenant,
            lambda adapter: adapter.generate_structured_data(req),
        )

    async def generate_image(
        self, req: CanonicalImageRequest, tenant: TenantContext
    ) -> CanonicalResponse:
        return await self._run(
            OPERATION_GENERATE_IMAGE,
            req.model,
            req.params.model_dump(exclude_none=True),
            tenant,
            lambda adapter: adapter.generate_image(req),
        )

    async def _run(
        self,
        operation: str,
        model_id: str,
        params: Dict[str, Any],
        tenant: TenantContext,
        call: AdapterCall,
    ) -> CanonicalResponse:
        adapter = self.resolver.resolve_adapter(model_id)
        provider_id = adapter.provider_id

        await self.rate_limiter.check(tenant.tenant_id)

        try:
            response = await call(adapter)
        except Exception as exc:
            error = adapter.normalize_error(exc)
            if error is exc:
                raise
            raise error from exc

        if response.status >= 400:
            logger.info(
                "%s on %s/%s not supported: %s",
                operation,
                provider_id,
                model_id,
                response.content,
            )
            return response

        try:
            cost = adapter.calculate_cost(model_id, response.full_response, params)
        except UnsupportedModelForCostError:
            logger.error(
                "No pricing for %s/%s after a successful call", provider_id, model_id
            )
            raise

        record = UsageRecord(
            millicredits=calculate_millicredits(cost, self.price_per_credit),
            sku_id=build_sku_id(provider_id, operation, model_id),
            sku_name=build_sku_name(adapter.name, operation, model_id),
            status=response.status,
        )
        logger.info(
            "%s %s/%s cost=%.8f millicredits=%s tenant=%s",
            operation,
            provider_id,
            model_id,
            cost,
            record.millicredits,
            tenant.tenant_id,
        )
        await report_usage_safely(
            self.billing,
            tenant_id=tenant.tenant_id,
            org_id=tenant.org_id,
            record=record,
        )
        return response


__all__ = ["LlmGateway"]
