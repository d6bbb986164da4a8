"""API router for v1 endpoints."""

from fastapi import APIRouter

from grant_agent.api import chat, documents, grants, profiles

router = APIRouter()

router.include_router(chat.router, tags=["chat"])
router.include_router(grants.router, prefix="/grants", tags=["grants"])
router.include_router(profiles.router, prefix="/profiles", tags=["profiles"])
router.include_router(documents.router, prefix="/documents", tags=["documents"])
