import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import PriceListError
from app.core.logging import setup_logging
from app.database.connection import Base, engine
from app.middleware.metrics import MetricsMiddleware, new_metrics
from app.models.product import Product, ProductPrice  # noqa: F401  (registers catalog tables)
from app.routes import system
from app.routes.price_lists import router as price_lists_router
from app.routes.price_list_conditions import router as price_list_conditions_router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Price List Resolution Service")

app.add_middleware(MetricsMiddleware)


@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)
    app.state.start_time = datetime.utcnow()
    app.state.metrics = new_metrics()
    logger.info("price list service started")


# ---------- ERROR RESPONSES ----------

@app.exception_handler(PriceListError)
async def price_list_error_handler(request: Request, exc: PriceListError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"statusCode": 400, "message": "; ".join(messages), "error": "ValidationError"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"statusCode": exc.status_code, "message": str(exc.detail), "error": "HTTPException"},
        headers=getattr(exc, "headers", None),
    )


app.include_router(price_lists_router)
app.include_router(price_list_conditions_router)
app.include_router(system.router)
