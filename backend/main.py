# backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

load_dotenv()

from config import settings
from database import SessionLocal, init_db
from exceptions import InventoryError
from services.scheduler import DailyReconciliationScheduler

# Router imports
from routes.alerts import router as alerts_router
from routes.categories import router as categories_router
from routes.customers import router as customers_router
from routes.dashboard import router as dashboard_router
from routes.logs import router as logs_router
from routes.products import router as products_router
from routes.purchase_orders import router as purchase_orders_router
from routes.reports import router as reports_router
from routes.sales_orders import router as sales_orders_router
from routes.stock import router as stock_router
from routes.suppliers import router as suppliers_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    scheduler = None
    if settings.RECONCILIATION_ENABLED:
        scheduler = DailyReconciliationScheduler(
            SessionLocal, hour=settings.RECONCILIATION_HOUR, minute=settings.RECONCILIATION_MINUTE,
        )
        scheduler.start()
    app.state.reconciliation_scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.stop()


app = FastAPI(title="Stock Ledger API", version="1.0.0", lifespan=lifespan)


# Service errors carry their own HTTP status and machine-readable code
@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    if exc.status_code >= 409:
        logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# CORS Configuration
# Local frontend by default, plus the deployed one from the environment
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration
app.include_router(products_router)
app.include_router(categories_router)
app.include_router(suppliers_router)
app.include_router(customers_router)
app.include_router(stock_router)
app.include_router(purchase_orders_router)
app.include_router(sales_orders_router)
app.include_router(alerts_router)
app.include_router(reports_router)
app.include_router(dashboard_router)
app.include_router(logs_router)


@app.get("/")
def read_root():
    return {"message": "Stock Ledger API is running"}
