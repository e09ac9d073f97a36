from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from perfumaria.infra.db import engine
from perfumaria.infra.logs import setup_logging
from perfumaria.infra.models import Base

from perfumaria.api.routers.customers import router as customers_router
from perfumaria.api.routers.products import router as products_router
from perfumaria.api.routers.sales import router as sales_router
from perfumaria.api.routers.receivables import router as receivables_router
from perfumaria.api.routers.expenses import router as expenses_router
from perfumaria.api.routers.dashboard import router as dashboard_router

setup_logging()
logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = (
    "http://localhost:3000,"
    "http://127.0.0.1:3000,"
    "http://localhost:5173,"
    "http://127.0.0.1:5173"
)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_ORIGINS).split(",") if o.strip()]


app = FastAPI(title="Perfumaria API")


@app.on_event("startup")
def _startup() -> None:
    logger.info("[startup] creating tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("[startup] tables created/checked")


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(customers_router, prefix="/customers", tags=["customers"])
app.include_router(products_router, prefix="/products", tags=["products"])
app.include_router(sales_router, prefix="/sales", tags=["sales"])
app.include_router(receivables_router, prefix="/receivables", tags=["receivables"])
app.include_router(expenses_router, prefix="/expenses", tags=["expenses"])
app.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
