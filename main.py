import logging
import os

from fastapi import Body, Depends, FastAPI, Path, Request
from fastapi.exceptions import RequestValidationError, StarletteHTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from auth import AuthService, current_identity, get_auth_service, require_admin
from catalog import ProductCatalog
from checkout import CheckoutProcessor
from config import DEFAULT_SECRET_KEY, Config, setup_logging
from database import Database
from errors import InventoryShortfall, StoreError
from models import (
    AdminLogin,
    CheckoutRequest,
    Identity,
    ProductCreate,
    ProductUpdate,
    UserLogin,
    UserRegister,
)
from reports import SalesReporter

logger = logging.getLogger(__name__)

app = FastAPI(title="Storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


def bind_database(application: FastAPI, db: Database):
    """Attach the store handle and every service built on it to the app."""
    application.state.db = db
    application.state.auth = AuthService(db, Config.SECRET_KEY, Config.TOKEN_TTL_HOURS)
    application.state.catalog = ProductCatalog(db)
    application.state.checkout = CheckoutProcessor(db, strict=Config.STRICT_CHECKOUT)
    application.state.reports = SalesReporter(db)


# استدعاء الدالة عند بدء التشغيل
@app.on_event("startup")
async def startup_db_client():
    if getattr(app.state, "db", None) is None:
        bind_database(app, Database.from_url())
    if Config.SECRET_KEY == DEFAULT_SECRET_KEY:
        logger.warning("SECRET_KEY is not set; using the development default")
    await app.state.db.ensure_indexes()
    logger.info(f"Storefront API ready (strict checkout: {Config.STRICT_CHECKOUT})")


@app.on_event("shutdown")
async def shutdown_db_client():
    if getattr(app.state, "db", None) is not None:
        app.state.db.close()


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    content = {"error": exc.message}
    if isinstance(exc, InventoryShortfall):
        content["inventoryFailures"] = jsonable_encoder(exc.shortfalls)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={
            "error": "Route Not Found",
            "message": f"The API endpoint '{request.url.path}' does not exist.",
        })
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(p) for p in err["loc"] if p != "body") for err in exc.errors())
    return JSONResponse(status_code=400, content={"error": f"Invalid request data: {fields}."})


def get_catalog(request: Request) -> ProductCatalog:
    return request.app.state.catalog


def get_checkout(request: Request) -> CheckoutProcessor:
    return request.app.state.checkout


def get_reports(request: Request) -> SalesReporter:
    return request.app.state.reports


# Serve frontend static files from the `static` directory
static_dir = str(Config.STATIC_DIR)
if os.path.isdir(static_dir):
    app.mount("/static", StaticFiles(directory=static_dir), name="static")


@app.get("/", include_in_schema=False)
async def root():
    """Return the frontend index.html when present, otherwise an API banner."""
    static_index = os.path.join(static_dir, "index.html")
    if os.path.isfile(static_index):
        return FileResponse(static_index)

    return {
        "status": "API is Live!",
        "message": "Welcome to the storefront API.",
        "documentation": "Access routes like /api/products, /api/login and /api/checkout.",
    }


# --- Accounts ---

@app.post("/api/register", status_code=201, response_description="تسجيل عميل جديد")
async def register(data: UserRegister, auth: AuthService = Depends(get_auth_service)):
    return await auth.register_customer(data)


@app.post("/api/login", response_description="تسجيل دخول العميل")
async def login(credentials: UserLogin, auth: AuthService = Depends(get_auth_service)):
    return await auth.login_customer(credentials.email, credentials.password)


@app.post("/api/admin/login", response_description="تسجيل دخول المدير")
async def admin_login(credentials: AdminLogin, auth: AuthService = Depends(get_auth_service)):
    return await auth.login_admin(credentials.email, credentials.password)


@app.get("/api/users", response_description="جلب قائمة العملاء")
async def list_users(admin: Identity = Depends(require_admin), auth: AuthService = Depends(get_auth_service)):
    return await auth.list_users()


# --- Catalog ---

@app.get("/api/products", response_description="جلب المنتجات المتاحة")
async def list_products(catalog: ProductCatalog = Depends(get_catalog)):
    return jsonable_encoder(await catalog.list_public())


@app.get("/api/products/{product_id}", response_description="جلب منتج")
async def get_product(product_id: str = Path(...), catalog: ProductCatalog = Depends(get_catalog)):
    return jsonable_encoder(await catalog.get(product_id))


@app.get("/api/admin/products", response_description="جلب كل المنتجات بما فيها المحذوفة")
async def list_all_products(admin: Identity = Depends(require_admin),
                            catalog: ProductCatalog = Depends(get_catalog)):
    return jsonable_encoder(await catalog.list_all())


@app.post("/api/admin/products", status_code=201, response_description="إضافة منتج جديد للمخزون")
async def create_product(product: ProductCreate = Body(...),
                         admin: Identity = Depends(require_admin),
                         catalog: ProductCatalog = Depends(get_catalog)):
    return jsonable_encoder(await catalog.create(product))


@app.patch("/api/admin/products/{product_id}", response_description="تحديث منتج جزئياً")
async def update_product(product_id: str = Path(...),
                         updates: ProductUpdate = Body(...),
                         admin: Identity = Depends(require_admin),
                         catalog: ProductCatalog = Depends(get_catalog)):
    return jsonable_encoder(await catalog.update(product_id, updates))


@app.delete("/api/admin/products/{product_id}", response_description="حذف منتج (حذف ناعم)")
async def delete_product(product_id: str = Path(...),
                         admin: Identity = Depends(require_admin),
                         catalog: ProductCatalog = Depends(get_catalog)):
    product = await catalog.soft_delete(product_id)
    return {"message": "Product deleted.", "id": product.id}


# --- Checkout & reports ---

@app.post("/api/checkout", response_description="إتمام الشراء وخصم الكمية")
async def checkout(order: CheckoutRequest = Body(...),
                   identity: Identity = Depends(current_identity),
                   processor: CheckoutProcessor = Depends(get_checkout)):
    result = await processor.checkout(order.cart, customer_id=identity.id)
    return {
        "message": "Order placed successfully!",
        "orderId": result.order_id,
        "orderIds": result.order_ids,
        "checkoutId": result.checkout_id,
        "inventoryFailures": jsonable_encoder(result.shortfalls),
    }


@app.get("/api/admin/sales-report", response_description="تقرير المبيعات")
async def sales_report(admin: Identity = Depends(require_admin),
                       reports: SalesReporter = Depends(get_reports)):
    return jsonable_encoder(await reports.sales_report())


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    uvicorn.run(app, host="0.0.0.0", port=Config.PORT)
