from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from boutique.orders import get_order_store
from boutique.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/store")
def health_store():
    try:
        info = get_order_store().ping()
    except Exception as e:
        info = {"connect_ok": False, "error": str(e)}
    return JSONResponse(info, status_code=200 if info.get("connect_ok") else 503)

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)
