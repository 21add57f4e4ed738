from fastapi import APIRouter

from commission_engine.api.routers import periods, policies, records

api_router = APIRouter()

api_router.include_router(policies.router)
api_router.include_router(periods.router)
api_router.include_router(records.router)
