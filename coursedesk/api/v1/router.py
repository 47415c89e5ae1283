# coursedesk/api/v1/router.py
from fastapi import APIRouter
from coursedesk.api.v1 import admin, auth, health

api_router = APIRouter()

# -------- públicas --------
api_router.include_router(health.router, tags=["health"])
# login/refresh/logout são públicas; /me exige token (ver RouteRules)
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# -------- admin do sistema (X-Admin-Key) --------
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
