"""
Routers Package

Contains FastAPI router modules for:
- Password gate (verify / logout)
- Protected proposals and contract signing
- Voice demo signed URLs
"""

from routers.auth_router import auth_router as auth_router
from routers.proposal_router import proposal_router as proposal_router
from routers.voice_router import voice_router as voice_router

__all__ = ["auth_router", "proposal_router", "voice_router"]
