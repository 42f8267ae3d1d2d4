"""V1 REST API routes.

Combines all sub-routers under the ``/api`` prefix.
"""

from fastapi import APIRouter

from tranzantions.api.v1.notifications import router as notifications_router
from tranzantions.api.v1.notify import router as notify_router
from tranzantions.api.v1.register import router as register_router
from tranzantions.api.v1.transactions import router as transactions_router
from tranzantions.api.v1.webhook import router as webhook_router

v1_router = APIRouter(prefix="/api")

v1_router.include_router(register_router)
v1_router.include_router(notify_router)
v1_router.include_router(webhook_router)
v1_router.include_router(transactions_router)
v1_router.include_router(notifications_router)

__all__ = ["v1_router"]
