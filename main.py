import json
import re
from http import HTTPStatus
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import AdminAuthenticator, StaticTokenAuthenticator, bearer_token
from catalog import Catalog, default_catalog
from config import Settings, get_settings
from database import OrderStore, create_order_store
from logger import configure_logging, get_logger
from orders import create_order, find_order, list_orders_newest_first, update_status
from schemas import Category, MenuItem, Store, StoreMenuSection, UpdateError

log = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PATCH, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, Idempotency-Key",
}

router = APIRouter()


# ===================== Dependencies =====================
def get_store(request: Request) -> OrderStore:
    return request.app.state.order_store


def get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def json_body(request: Request) -> dict:
    """Request body as a dict; malformed or non-object JSON reads as {}."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def require_admin(request: Request, authorization: Optional[str] = Header(None)) -> None:
    authenticator: AdminAuthenticator = request.app.state.authenticator
    if not authenticator.verify(bearer_token(authorization)):
        log.info("admin_unauthorized", path=request.url.path)
        raise HTTPException(status_code=401, detail="unauthorized")


# ===================== Public Endpoints =====================
@router.get("/")
def root():
    return {"status": "ok"}


@router.get("/menus", response_model=List[MenuItem])
def list_menus(catalog: Catalog = Depends(get_catalog)):
    return catalog.menu_items()


# ===================== Catalog =====================
@router.get("/categories", response_model=List[Category])
def list_categories(catalog: Catalog = Depends(get_catalog)):
    return catalog.categories


@router.get("/stores", response_model=List[Store])
def list_stores(category: Optional[str] = None, catalog: Catalog = Depends(get_catalog)):
    return catalog.list_stores(category)


@router.get("/stores/search", response_model=List[Store])
def search_stores(q: str = "", catalog: Catalog = Depends(get_catalog)):
    return catalog.search_stores(q)


@router.get("/stores/{store_id}", response_model=Store)
def get_store_detail(store_id: int, catalog: Catalog = Depends(get_catalog)):
    store = catalog.find_store(store_id)
    if not store:
        raise HTTPException(404, "store_not_found")
    return store


@router.get("/stores/{store_id}/menu", response_model=List[StoreMenuSection])
def get_store_menu(store_id: int, catalog: Catalog = Depends(get_catalog)):
    return catalog.menu_sections(store_id)


# ===================== Orders =====================
@router.post("/orders")
def post_order(
    payload: dict = Depends(json_body),
    idempotency_key: Optional[str] = Header(None),
    store: OrderStore = Depends(get_store),
    catalog: Catalog = Depends(get_catalog),
    settings: Settings = Depends(get_app_settings),
):
    result = create_order(payload, idempotency_key, store, catalog, settings.default_payment_method)
    if result.error is not None:
        raise HTTPException(422, result.error.value)
    status_code = 201 if result.created else 200
    return JSONResponse({"success": True, "tracking_uuid": result.tracking_uuid}, status_code=status_code)


@router.get("/orders/{tracking_uuid}")
def get_order(tracking_uuid: str, store: OrderStore = Depends(get_store)):
    order = find_order(tracking_uuid, store)
    if not order:
        raise HTTPException(404, UpdateError.ORDER_NOT_FOUND.value)
    return order


# ===================== Admin =====================
@router.post("/admin/login")
def admin_login(request: Request, payload: dict = Depends(json_body)):
    authenticator: AdminAuthenticator = request.app.state.authenticator
    password = payload.get("password")
    token = authenticator.login(password) if isinstance(password, str) else None
    if not token:
        log.info("admin_login_failed")
        raise HTTPException(401, "invalid_credentials")
    return {"token": token}


@router.get("/admin/orders", dependencies=[Depends(require_admin)])
def admin_list_orders(store: OrderStore = Depends(get_store)):
    return list_orders_newest_first(store)


@router.patch("/admin/orders/{order_id}", dependencies=[Depends(require_admin)])
def admin_update_order(order_id: str, payload: dict = Depends(json_body), store: OrderStore = Depends(get_store)):
    if not re.fullmatch(r"[0-9]+", order_id):
        raise HTTPException(404, "not_found")
    result = update_status(int(order_id), payload.get("status"), payload.get("eta_minutes"), store)
    if result.error == UpdateError.ORDER_NOT_FOUND:
        raise HTTPException(404, result.error.value)
    if result.error is not None:
        raise HTTPException(422, result.error.value)
    return {"success": True}


# ===================== App =====================
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    phrase = HTTPStatus(exc.status_code).phrase
    if not detail or detail == phrase:
        detail = phrase.lower().replace(" ", "_")
    return JSONResponse({"error": detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "invalid_request"}, status_code=422)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[OrderStore] = None,
    authenticator: Optional[AdminAuthenticator] = None,
    catalog: Optional[Catalog] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Flash Delivery Ordering API", version="1.0.0")
    app.state.settings = settings
    app.state.order_store = store or create_order_store(settings)
    app.state.authenticator = authenticator or StaticTokenAuthenticator(settings.admin_password)
    app.state.catalog = catalog or default_catalog()

    @app.middleware("http")
    async def open_cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)

    log.info("application_startup", version=app.version, store=type(app.state.order_store).__name__)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
