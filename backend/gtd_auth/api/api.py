"""
API router configuration.

Mounted under ``settings.app.API_PREFIX`` by the application factory.
"""

from fastapi import APIRouter

from gtd_auth.api.endpoints import account, admin, auth

api_router = APIRouter()


def get_routers():
    return [
        (auth.router, "/auth", ["Authentication"]),
        (admin.router, "/admin", ["Administration"]),
        (account.router, "/account", ["Account"]),
    ]


for router_item, prefix, tags in get_routers():
    api_router.include_router(router_item, prefix=prefix, tags=tags)
