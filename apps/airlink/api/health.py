from fastapi import APIRouter, Depends

from airlink.core.dependencies import AirlinkServices, get_services

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
def health(services: AirlinkServices = Depends(get_services)):
    return {"status": "ok", "app": services.settings.app_name}
