"""Cache helpers for per-tenant dashboard payloads."""

import logging
from typing import Any, Callable, Optional

from flask import current_app, has_app_context

from ..extensions import cache

logger = logging.getLogger(__name__)

_VERSION_KEY = "bom:dashboard:version:{tenant_id}"
_PAYLOAD_KEY = "bom:dashboard:v{version}:{tenant_id}:{name}"


def _tenant_version(tenant_id: str) -> int:
    try:
        return int(cache.get(_VERSION_KEY.format(tenant_id=tenant_id)) or 1)
    except Exception as exc:  # pragma: no cover - cache backend outage
        logger.debug("Cache version lookup failed for tenant %s: %s", tenant_id, exc)
        return 1


def dashboard_cache_key(tenant_id: str, name: str) -> str:
    return _PAYLOAD_KEY.format(version=_tenant_version(tenant_id), tenant_id=tenant_id, name=name)


def cached_payload(tenant_id: str, name: str, build: Callable[[], Any], timeout: Optional[int] = None) -> Any:
    """Return the cached payload for ``name`` or build and store it."""
    ttl = timeout if timeout is not None else current_app.config.get("BOM_DASHBOARD_CACHE_TTL", 60)
    if not ttl:
        return build()

    key = dashboard_cache_key(tenant_id, name)
    try:
        cached = cache.get(key)
    except Exception as exc:  # pragma: no cover - cache backend outage
        logger.debug("Cache get failed for %s: %s", key, exc)
        cached = None
    if cached is not None:
        return cached

    payload = build()
    try:
        cache.set(key, payload, timeout=ttl)
    except Exception as exc:  # pragma: no cover - cache backend outage
        logger.debug("Cache set failed for %s: %s", key, exc)
    return payload


def invalidate_tenant_dashboards(tenant_id: str) -> None:
    """Bump the tenant's cache version so stale dashboard payloads are ignored."""
    if not has_app_context():
        return
    key = _VERSION_KEY.format(tenant_id=tenant_id)
    try:
        cache.set(key, _tenant_version(tenant_id) + 1, timeout=0)
    except Exception as exc:  # pragma: no cover - cache backend outage
        logger.debug("Cache invalidation failed for tenant %s: %s", tenant_id, exc)
