from fastapi import APIRouter

from app.sarisuki.routers.auth import router as auth_router
from app.sarisuki.routers.health import router as health_router
from app.sarisuki.routers.products import router as products_router
from app.sarisuki.routers.record_sale import router as record_sale_router
from app.sarisuki.routers.sales_report import router as sales_report_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["ops"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(products_router, tags=["products"])
api_router.include_router(sales_report_router, tags=["reports"])
api_router.include_router(record_sale_router, tags=["record-sale"])
