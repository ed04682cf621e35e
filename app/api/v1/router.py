# app/api/v1/router.py
from fastapi import APIRouter

from app.api.v1.endpoints import (
    admissions,
    pharmacy,
    wards,
)

api_router = APIRouter()

api_router.include_router(wards.router, tags=["beds"])
api_router.include_router(admissions.router, tags=["adt"])
api_router.include_router(pharmacy.router, prefix="/pharmacy", tags=["pharmacy"])
