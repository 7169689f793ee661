import json
import time
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

import errors
import handlers
from config import Settings, load_settings
from errors import ProductError
from models import default_products
from store import ProductStore

# Prometheus metrics (enregistrées une seule fois par process)
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["service", "method", "endpoint"]
)
ERROR_COUNT = Counter(
    "http_errors_total",
    "Total HTTP errors",
    ["service", "endpoint", "error_type"]
)


def setup_logging(settings: Settings) -> None:
    # Config logging JSON (niveaux INFO, WARNING, ERROR)
    logger.remove()  # Supprime les handlers existants, reconfiguration idempotente
    logger.add(
        sink=settings.log_file,
        format="{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level} | {message} | {extra}",
        level=settings.log_level,
        serialize=True,  # Format JSON
        rotation="1 day",  # Rotation quotidienne
    )


def get_store(request: Request) -> ProductStore:
    return request.app.state.store


def _reject_constant(name):
    # NaN, Infinity et -Infinity ne sont pas du JSON standard
    raise ValueError(f"Unsupported JSON constant {name}")


async def read_json_body(request: Request):
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        raise errors.bad_request(errors.INVALID_BODY, "invalid_body")


def _json(result) -> JSONResponse:
    payload, status_code = result
    return JSONResponse(status_code=status_code, content=payload)


router = APIRouter()


@router.get("/products")
async def get_all_products(
    id: Optional[str] = None,
    category: Optional[str] = None,
    price: Optional[str] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    store: ProductStore = Depends(get_store),
):
    return _json(handlers.list_products(store, id=id, category=category, price=price,
                                        sortBy=sortBy, sortOrder=sortOrder))


@router.get("/products/{product_id}")
async def get_product(product_id: str, store: ProductStore = Depends(get_store)):
    return _json(handlers.get_product(store, product_id))


@router.post("/products")
async def create_product(request: Request, store: ProductStore = Depends(get_store)):
    body = await read_json_body(request)
    return _json(handlers.create_product(store, body))


@router.put("/products/{product_id}")
async def update_product(product_id: str, request: Request, store: ProductStore = Depends(get_store)):
    body = await read_json_body(request)
    return _json(handlers.update_product(store, product_id, body))


@router.patch("/products/{product_id}")
async def patch_product(product_id: str, request: Request, store: ProductStore = Depends(get_store)):
    body = await read_json_body(request)
    return _json(handlers.patch_product(store, product_id, body))


@router.delete("/products/{product_id}")
async def delete_product(product_id: str, store: ProductStore = Depends(get_store)):
    return _json(handlers.delete_product(store, product_id))


def create_app(store: Optional[ProductStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings)
    service_name = settings.service_name

    if store is None:
        store = ProductStore(default_products() if settings.seed_products else [])

    app = FastAPI(title="Products Service")
    app.state.store = store
    app.state.settings = settings

    # Middleware pour logger les requests avec correlation ID
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        # Generate or propagate correlation ID (trace-id)
        trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
        start_time = time.time()

        # Bind trace_id to logger context
        with logger.contextualize(trace_id=trace_id, service=service_name):
            logger.info(
                f"Request: {request.method} {request.url.path}",
                extra={"method": request.method, "url": str(request.url), "trace_id": trace_id}
            )

            response = await call_next(request)
            latency = time.time() - start_time

            REQUEST_COUNT.labels(
                service=service_name,
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code
            ).inc()
            REQUEST_LATENCY.labels(
                service=service_name,
                method=request.method,
                endpoint=request.url.path
            ).observe(latency)

            logger.info(
                f"Response status: {response.status_code}",
                extra={"status": response.status_code, "latency": latency, "trace_id": trace_id}
            )

            # Add trace_id to response headers for tracing
            response.headers["X-Trace-ID"] = trace_id
            return response

    @app.exception_handler(ProductError)
    async def product_error_handler(request: Request, exc: ProductError):
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.message}")
        ERROR_COUNT.labels(service=service_name, endpoint=request.url.path, error_type=exc.error_type).inc()
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Route ou méthode inconnue : même réponse 404 pour les deux
        if exc.status_code in (404, 405):
            logger.warning(f"No endpoint for {request.method} {request.url.path}")
            ERROR_COUNT.labels(service=service_name, endpoint=request.url.path, error_type="endpoint_not_found").inc()
            return JSONResponse(status_code=404, content={"error": errors.ENDPOINT_NOT_FOUND})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.get("/metrics")
    async def metrics():
        """Endpoint /metrics compatible Prometheus"""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {"status": "healthy", "service": service_name, "products": len(app.state.store)}

    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    settings = app.state.settings
    logger.info(f"Starting Products Service on port {settings.port}")
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
