"""Health check endpoints for monitoring and deployment verification."""

import time

from fastapi import APIRouter, Response, status

from src.core.store import get_store
from src.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse
from src.services.catalog_service import get_catalog

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running. Used for liveness checks.",
)
async def health_check() -> HealthResponse:
    """Return basic health status.

    This endpoint should always return 200 if the service is running.
    It does not check external dependencies.
    """
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Readiness check",
    description="Check that the key-value store answers and the catalog is loaded.",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Check readiness of the store and the catalog.

    Returns 503 if any dependency is unhealthy.

    Args:
        response: FastAPI response object for setting status code.

    Returns:
        ReadinessResponse: Status of all dependency checks.
    """
    checks: list[CheckResult] = []

    start_time = time.perf_counter()
    store_result = await get_store().check_health()
    checks.append(
        CheckResult(
            name="store",
            healthy=store_result["healthy"],
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
            error=store_result.get("error"),
        )
    )

    start_time = time.perf_counter()
    try:
        catalog = get_catalog()
        catalog_error = None if catalog.products else "Catalog has no products"
    except (OSError, ValueError) as e:
        catalog_error = str(e)
    checks.append(
        CheckResult(
            name="catalog",
            healthy=catalog_error is None,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
            error=catalog_error,
        )
    )

    all_healthy = all(check.healthy for check in checks)
    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status=HealthStatus.HEALTHY if all_healthy else HealthStatus.UNHEALTHY,
        checks=checks,
    )
