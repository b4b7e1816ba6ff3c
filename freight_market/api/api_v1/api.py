# freight_market/api/api_v1/api.py
from fastapi import APIRouter

from freight_market.api.api_v1.routers import (
    bids,
    loads,
    tracking,
)

api_router = APIRouter()

api_router.include_router(loads.router)
api_router.include_router(bids.router)
api_router.include_router(tracking.router)
