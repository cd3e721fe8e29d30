"""Vector search health route."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...models.vector import VectorHealth
from ...services.vector_service import VectorService, get_vector_service
from ..middleware import AuthContext, get_auth_context

router = APIRouter(prefix="/api/vector", tags=["vector"])


@router.get("/health", response_model=VectorHealth)
async def vector_health(
    auth: AuthContext = Depends(get_auth_context),
    vectors: VectorService = Depends(get_vector_service),
):
    """Store connectivity and embedding configuration."""
    return vectors.health_check()


__all__ = ["router"]
