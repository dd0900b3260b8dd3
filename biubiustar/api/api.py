"""API router aggregation."""
from fastapi import APIRouter

from biubiustar.api.endpoints import admin, auth, contact, events, health, posts, users

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(posts.router)
api_router.include_router(events.router)
api_router.include_router(admin.router)
api_router.include_router(contact.router)
api_router.include_router(health.router)
