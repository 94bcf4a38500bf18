from fastapi import APIRouter, Depends, Request

from app.hub.core.context import get_correlation_id
from app.hub.core.deps import require_profile
from app.hub.core.errors import ok_response
from app.hub.db.session import get_db
from app.hub.repos.access_grants import AccessGrantRepository
from app.hub.routers.admin_profiles import profile_item

router = APIRouter()


@router.get("/me")
async def me(request: Request, profile=Depends(require_profile), db=Depends(get_db)):
    data = profile_item(profile)
    data["store_ids"] = sorted(str(store_id) for store_id in AccessGrantRepository(db).list_store_ids(profile.id))
    return ok_response(data, get_correlation_id(request))
