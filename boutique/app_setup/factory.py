"""
Factory d'application pour les entrypoints (boutique.app, boutique.asgi).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - middlewares (TrustedHost, proxy headers, en-têtes de sécurité)
      - gestionnaires d'exceptions JSON
      - routers (payments, catalogue, health)
    """
    app = FastAPI(title="Bar à Bœuf - boutique", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
