from fastapi import APIRouter

from .v1 import ton

api_router = APIRouter()
api_router.include_router(ton.router, prefix="/v1/ton", tags=["ton"])
