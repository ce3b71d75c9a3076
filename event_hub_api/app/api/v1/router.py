"""
Top-level router for version 1 of the API.

Aggregates the domain routers under a unified prefix.  When a new
domain is introduced, include its router here.
"""

from fastapi import APIRouter

from .endpoints import analytics, audit, events, payments, users


router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(payments.router, prefix="/payments", tags=["payments"])
router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])
