# bakeryops/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .db import get_gateway
from .errors import NotFoundError, PersistenceError, ValidationError
from .routes import catalog, notifications, orders, partners, pos, profiles, promo_codes, uploads
from .services.notifications import build_poller
from .settings import settings, setup_logging

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="SST Bakery Admin API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for r in catalog.routers:
    app.include_router(r)
app.include_router(orders.router)
app.include_router(pos.router)
app.include_router(partners.router)
app.include_router(profiles.router)
app.include_router(promo_codes.router)
app.include_router(uploads.router)
app.include_router(notifications.router)


@app.exception_handler(ValidationError)
async def _validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def _persistence_error(request: Request, exc: PersistenceError):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": f"Failed to complete request: {exc}"})


@app.get("/")
def root():
    return {"message": "SST Bakery admin API is running"}


@app.on_event("startup")
async def _startup_poller():
    # honour a test/dev override of the gateway dependency
    gateway = app.dependency_overrides.get(get_gateway, get_gateway)()
    app.state.poller = build_poller(gateway)
    if settings.enable_order_poller:
        app.state.poller.start()


@app.on_event("shutdown")
async def _shutdown_poller():
    poller = getattr(app.state, "poller", None)
    if poller is not None:
        await poller.stop()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())
