import base64
import binascii
from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from llm_relay.errors import GatewayError, Unauthenticated
from llm_relay.settings import settings


@dataclass(frozen=True)
class TenantContext:
    tenant_id: str
    org_id: Optional[str] = None


def _decode_token(token: str) -> str:
    """
    Decode base64 token; raise if invalid or unexpected.
    """
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise Unauthenticated("Invalid API token") from None

    expected = settings.api_auth_token
    if not expected:
        raise GatewayError(
            "Gateway token is not configured", code="AUTH_NOT_CONFIGURED"
        )

    if decoded != expected:
        raise Unauthenticated("Invalid API token")

    return decoded


async def require_auth(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
    x_org_id: str | None = Header(default=None, alias="X-Org-Id"),
) -> TenantContext:
    """
    Resolve the calling tenant.

    Credentials: ``Authorization: Bearer <base64(token)>`` or
    ``X-API-Key: <base64(token)>``; the decoded value must equal
    ``LLM_RELAY_AUTH_TOKEN``. The tenant comes from ``X-Tenant-Id`` and the
    optional organisation from ``X-Org-Id``.
    """
    token_value: str | None = None

    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise Unauthenticated(
                "Invalid Authorization header, expected 'Bearer <token>'"
            )
        token_value = token.strip()
    elif x_api_key:
        token_value = x_api_key.strip() or None

    if not token_value:
        raise Unauthenticated("Missing Authorization or X-API-Key header")

    _decode_token(token_value)

    tenant_id = (x_tenant_id or "").strip()
    if not tenant_id:
        raise Unauthenticated("Missing X-Tenant-Id header")

    return TenantContext(tenant_id=tenant_id, org_id=(x_org_id or "").strip() or None)


__all__ = ["TenantContext", "require_auth"]
