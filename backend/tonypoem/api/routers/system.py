# backend/tonypoem/api/routers/system.py
import asyncio

from fastapi import APIRouter, Depends

from tonypoem.dependencies import Services, get_services
from tonypoem.models import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(services: Services = Depends(get_services)):
    """Health check endpoint: database connectivity and blob storage reachability."""
    database = await services.database.health_check()
    storage = await asyncio.to_thread(services.blob_store.check_health)
    healthy = database.get("status") == "healthy" and storage.get("status") == "healthy"
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version=services.settings.api_version,
        database=database,
        storage=storage,
    )
