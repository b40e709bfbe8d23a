"""Aggregate all v1 API routers."""

from fastapi import APIRouter
from app.api.v1.health import router as health_router
from app.api.v1.pdf import router as pdf_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(pdf_router, tags=["pdf"])

# Compatibility shim: mounts /compress and /resize at root, where the
# browser tool posts them
pdf_router_compat = APIRouter()
pdf_router_compat.include_router(pdf_router, tags=["pdf"])
