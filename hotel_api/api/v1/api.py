from fastapi import APIRouter
from hotel_api.api.v1.routes.auth import router as auth_router
from hotel_api.api.v1.routes.rooms import router as rooms_router
from hotel_api.api.v1.routes.bookings import router as bookings_router
from hotel_api.api.v1.routes.payments import router as payments_router
from hotel_api.api.v1.routes.users import router as users_router
from hotel_api.api.v1.routes.reports import router as reports_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(rooms_router)
api_router.include_router(bookings_router)
api_router.include_router(payments_router)
api_router.include_router(users_router)
api_router.include_router(reports_router)
