"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Unlike a blanket include_router(dependencies=[auth]) guard, each
route resolves its own auth context, because many routes take account_id /
organization_id overrides from their query or body and must validate the
body before authenticating. Health is the only open route.
"""

from fastapi import APIRouter

from backstage.api.api_keys import router as api_keys_router
from backstage.api.artists import router as artists_router
from backstage.api.auth import router as auth_router
from backstage.api.health import router as health_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(artists_router, tags=["artists"])
api_router.include_router(api_keys_router, tags=["api-keys"])
