from fastapi import APIRouter

from api.v1.organizations import router as organizations_router
from api.v1.users import router as users_router

router = APIRouter()

# Include v1 routers
router.include_router(users_router, prefix="/v1")
router.include_router(organizations_router, prefix="/v1")
