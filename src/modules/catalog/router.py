"""Catalog read-only routes."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.modules.catalog.models import ServiceType
from src.modules.catalog.schemas import ServiceTypePublic

router = APIRouter(prefix="/api/v1/service-types", tags=["catalog"])


@router.get("", response_model=list[ServiceTypePublic])
async def list_service_types(db: AsyncSession = Depends(get_db)) -> list[ServiceType]:
    result = await db.execute(select(ServiceType).order_by(ServiceType.name))
    return list(result.scalars().all())
