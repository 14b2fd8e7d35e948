"""Aggregate all API routers."""

from fastapi import APIRouter

from . import auth, catalog, listings, system

api_router = APIRouter()
api_router.include_router(catalog.router)
api_router.include_router(listings.router)
api_router.include_router(auth.router)
api_router.include_router(system.router)
