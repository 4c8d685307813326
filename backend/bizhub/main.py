import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bizhub.api import (
    agents,
    alerts,
    auth,
    branches,
    employees,
    expenses,
    inventory,
    invoices,
    payables,
    payroll,
    receivables,
    recurring_expenses,
    sales,
    stock_transfers,
)
from bizhub.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

API_PREFIX = "/api/v1"

app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="Multi-tenant business dashboard: payroll, accounting, inventory and agents",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
for module in (
    auth,
    employees,
    payroll,
    expenses,
    recurring_expenses,
    sales,
    payables,
    invoices,
    receivables,
    branches,
    inventory,
    stock_transfers,
    agents,
    alerts,
):
    app.include_router(module.router, prefix=API_PREFIX)


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": "0.1.0"}
