from contextlib import asynccontextmanager
from fastapi import FastAPI

from dynamic_pricing.pricing.routes import pricing_router
from dynamic_pricing.scheduling.routes import schedule_router

from .db.main import init_db
from .errors import register_all_errors
from .middleware import register_middleware

version = "v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield


app = FastAPI(
    title = "Dynamic Pricing",
    description = "Resolves the best discount for products and carts from scheduled pricing rules",
    version = version,
    lifespan = lifespan,
)


register_all_errors(app)
register_middleware(app)


app.include_router(pricing_router, prefix="/pricing", tags=['pricing'])
app.include_router(schedule_router, prefix="/schedule", tags=['schedule'])
