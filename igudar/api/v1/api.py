"""
V1 API router aggregation, mounted by ``main.py`` at ``/api/v1``.
"""

from fastapi import APIRouter

from igudar.api.v1.endpoints import investments, properties, users

api_router = APIRouter()

api_router.include_router(properties.router, prefix="/properties", tags=["Properties"])
api_router.include_router(investments.router, prefix="/investments", tags=["Investments"])
api_router.include_router(users.router, prefix="/users", tags=["Portfolio"])
