"""
Health, readiness and liveness probes.

``/health`` reports each backing service with its round-trip time;
``/health/ready`` is what a load balancer should poll.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from docgraph import __version__
from docgraph.api.dependencies import get_catalog, get_client
from docgraph.core.exceptions import DocGraphError
from docgraph.core.neo4j_client import Neo4jClient
from docgraph.schema.catalog import SchemaCatalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


class ServiceHealth(BaseModel):
    name: str
    status: str  # healthy | unhealthy
    message: Optional[str] = None
    latency_ms: Optional[float] = None


class HealthResponse(BaseModel):
    status: str  # healthy | degraded | unhealthy
    timestamp: str
    version: str
    services: dict[str, ServiceHealth]


class ReadinessResponse(BaseModel):
    ready: bool
    checks: dict[str, bool]


class LivenessResponse(BaseModel):
    alive: bool
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


async def _probe_store(client: Neo4jClient) -> ServiceHealth:
    started = time.perf_counter()
    if await client.health_check():
        return ServiceHealth(
            name="neo4j", status="healthy", message="Connected", latency_ms=_elapsed_ms(started)
        )
    return ServiceHealth(name="neo4j", status="unhealthy", message="Store unreachable")


async def _probe_catalog(catalog: SchemaCatalog) -> ServiceHealth:
    started = time.perf_counter()
    try:
        doctypes = await catalog.list_doctypes()
    except DocGraphError as e:
        logger.warning(f"Catalog probe failed: {e}")
        return ServiceHealth(name="catalog", status="unhealthy", message=str(e))

    if not doctypes:
        return ServiceHealth(
            name="catalog",
            status="unhealthy",
            message="No DocTypes defined",
            latency_ms=_elapsed_ms(started),
        )
    return ServiceHealth(
        name="catalog",
        status="healthy",
        message=f"{len(doctypes)} DocTypes",
        latency_ms=_elapsed_ms(started),
    )


@router.get("", response_model=HealthResponse)
@router.get("/", response_model=HealthResponse)
async def health_check(
    client: Neo4jClient = Depends(get_client),
    catalog: SchemaCatalog = Depends(get_catalog),
):
    """
    Store connectivity plus catalog presence.

    ``degraded`` means the store answers but no DocTypes are defined yet;
    the catalog is only probed once the store is reachable.
    """
    services = {"neo4j": await _probe_store(client)}
    if services["neo4j"].status == "healthy":
        services["catalog"] = await _probe_catalog(catalog)
        overall = "healthy" if services["catalog"].status == "healthy" else "degraded"
    else:
        overall = "unhealthy"

    return HealthResponse(
        status=overall,
        timestamp=_now(),
        version=__version__,
        services=services,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(client: Neo4jClient = Depends(get_client)):
    """Ready once the store answers; an empty catalog does not block traffic."""
    checks = {"neo4j": await client.health_check()}
    return ReadinessResponse(ready=all(checks.values()), checks=checks)


@router.get("/live", response_model=LivenessResponse)
async def liveness_check():
    return LivenessResponse(alive=True, timestamp=_now())
