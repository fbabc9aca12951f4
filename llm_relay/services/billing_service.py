"""
Usage reporting to the external billing service.

Each priced LLM call produces one usage record keyed by a deterministic SKU:

    llm:<provider_id>:<operation>:<model_id>

Reporting happens after the vendor call has already been paid for, so a
failed report is logged and the caller still gets the vendor response.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

import httpx

from llm_relay.logging_config import logger
from llm_relay.models import UsageRecord

OPERATION_GENERATE_TEXT = "generate_text"
OPERATION_GENERATE_STRUCTURED_DATA = "generate_structured_data"
OPERATION_GENERATE_IMAGE = "generate_image"


class BillingClient(Protocol):
    async def report_usage(
        self,
        tenant_id: str,
        org_id: Optional[str],
        millicredits: int,
        sku_id: str,
        sku_name: str,
        status: int,
    ) -> None: ...


def build_sku_id(provider_id: str, operation: str, model_id: str) -> str:
    return f"llm:{provider_id}:{operation}:{model_id}"


def build_sku_name(provider_name: str, operation: str, model_id: str) -> str:
    title = operation.replace("_", " ").title()
    return f"LLM {provider_name} {title} {model_id}"


class HttpBillingClient:
    """POSTs usage records as JSON to ``BILLING_URL``."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        api_key: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.client = client
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    async def report_usage(
        self,
        tenant_id: str,
        org_id: Optional[str],
        millicredits: int,
        sku_id: str,
        sku_name: str,
        status: int,
    ) -> None:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload: Dict[str, Any] = {
            "millicredits": millicredits,
            "usage": {
                "tenantId": tenant_id,
                "orgId": org_id,
                "skuId": sku_id,
                "skuName": sku_name,
                "status": str(status),
            },
        }
        resp = await self.client.post(
            self.url, json=payload, headers=headers, timeout=self.timeout
        )
        resp.raise_for_status()


class LoggingBillingClient:
    """Used when no billing URL is configured: usage is only written to the log."""

    async def report_usage(
        self,
        tenant_id: str,
        org_id: Optional[str],
        millicredits: int,
        sku_id: str,
        sku_name: str,
        status: int,
    ) -> None:
        logger.info(
            "Usage: tenant=%s org=%s sku=%s millicredits=%s status=%s",
            tenant_id,
            org_id,
            sku_id,
            millicredits,
            status,
        )


async def report_usage_safely(
    billing: BillingClient,
    *,
    tenant_id: str,
    org_id: Optional[str],
    record: UsageRecord,
) -> bool:
    """
    Report one usage record and return whether it was accepted.

    Any failure is logged with its traceback and swallowed.
    """
    try:
        await billing.report_usage(
            tenant_id,
            org_id,
            record.millicredits,
            record.sku_id,
            record.sku_name,
            record.status,
        )
    except Exception:
        logger.exception(
            "Failed to report usage (tenant=%s sku=%s millicredits=%s)",
            tenant_id,
            record.sku_id,
            record.millicredits,
        )
        return False
    logger.info(
        "Reported usage: tenant=%s sku=%s millicredits=%s",
        tenant_id,
        record.sku_id,
        record.millicredits,
    )
    return True


__all__ = [
    "BillingClient",
    "HttpBillingClient",
    "LoggingBillingClient",
    "OPERATION_GENERATE_IMAGE",
    "OPERATION_GENERATE_STRUCTURED_DATA",
    "OPERATION_GENERATE_TEXT",
    "build_sku_id",
    "build_sku_name",
    "report_usage_safely",
]
