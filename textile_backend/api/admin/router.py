from fastapi import APIRouter
from textile_backend.api.admin import auth, customers, query, roles

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["AdminAuth"])
router.include_router(roles.router, prefix="/roles", tags=["AdminRoles"])
router.include_router(customers.router, prefix="/customers", tags=["AdminCustomers"])
router.include_router(query.router, tags=["AdminQuery"])
