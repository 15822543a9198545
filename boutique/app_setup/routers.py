"""
Registre central des routers (payments, catalogue, health).
"""
from fastapi import FastAPI
from boutique.payments import views as payments_views
from boutique.catalog import views as catalog_views
from boutique.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API v1
    app.include_router(payments_views.router)
    app.include_router(catalog_views.router)
    # Health & monitoring
    app.include_router(health_router)
