from fastapi import APIRouter, Depends

from ...core.security import portal_for
from ...api.deps import get_current_identity
from ...schemas.auth import Identity, PortalResponse

router = APIRouter(tags=["Portal"])

@router.get("/portal", response_model=PortalResponse)
async def get_portal(identity: Identity = Depends(get_current_identity)):
    """Where the signed-in user belongs."""
    return PortalResponse(role=identity.role, portal=portal_for(identity.role))
