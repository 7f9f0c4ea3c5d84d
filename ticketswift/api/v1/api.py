from fastapi import APIRouter
from ticketswift.api.v1.routes.auth import router as auth_router
from ticketswift.api.v1.routes.me import router as me_router
from ticketswift.api.v1.routes.events import router as events_router
from ticketswift.api.v1.routes.codes import router as codes_router
from ticketswift.api.v1.routes.agent import router as agent_router
from ticketswift.api.v1.routes.payments import router as payments_router
from ticketswift.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(me_router)
api_router.include_router(events_router)
api_router.include_router(codes_router)
api_router.include_router(agent_router)
api_router.include_router(payments_router)
api_router.include_router(admin_router)
