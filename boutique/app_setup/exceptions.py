"""
Gestionnaires d'exceptions.
- Erreurs métier payments (PaymentsError) et HTTPException Starlette (404, 405, 429...) -> JSON {"error": ...}.
- Le chemin du checkout garde ses en-têtes CORS, même sur 405/429.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from boutique.payments.errors import PaymentsError
from boutique.payments.views import CHECKOUT_PATH
from boutique.utils.cors import with_cors

def _json_error(request: Request, status_code: int, payload: dict, headers=None) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=payload, headers=headers)
    if request.url.path.rstrip("/") == CHECKOUT_PATH:
        with_cors(response)
    return response

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_as_json(request: Request, exc: StarletteHTTPException):
        detail = "Method not allowed" if exc.status_code == 405 else exc.detail
        return _json_error(request, exc.status_code, {"error": detail}, getattr(exc, "headers", None))

    @app.exception_handler(PaymentsError)
    async def payments_error_as_json(request: Request, exc: PaymentsError):
        return _json_error(request, exc.status_code, exc.to_payload())
