# --- File: main.py ---
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from api import endpoints
from api.models import ExchangeStateResponse
from exchange.codec import EnvelopeCodec
from exchange.controller import ExchangeController
from exchange.resolver import KeypairResolver, default_sources
from exchange.validator import ImportValidator
from identity.session import SessionManager
from identity.storage import SecureKeyStorage, LegacyKeyValueStore
from contextlib import asynccontextmanager
from typing import Tuple
import uvicorn
import logging
import os
import config # Your config file


def build_components(
    secure_storage_file: str = config.SECURE_STORAGE_FILE,
    legacy_store_file: str = config.LEGACY_STORE_FILE,
    registry_file: str = config.KNOWN_IDENTITIES_FILE,
) -> Tuple[SessionManager, ExchangeController]:
    """Wires storage, identity and exchange components together."""
    storage = SecureKeyStorage(secure_storage_file)
    legacy_store = LegacyKeyValueStore(legacy_store_file)
    session_manager = SessionManager(storage=storage, registry_path=registry_file)
    controller = ExchangeController(
        resolver=KeypairResolver(default_sources(storage, legacy_store)),
        codec=EnvelopeCodec(),
        validator=ImportValidator(),
        authenticator=session_manager,
    )
    # The import is committed only once the controller applies Authenticated
    controller.subscribe(session_manager.on_exchange_state)
    return session_manager, controller


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    logging.info("Application startup sequence initiated...")
    try:
        if endpoints._controller_instance is None or endpoints._session_manager_instance is None:
            logging.info("Lifespan: Initializing identity and exchange components...")
            endpoints._session_manager_instance, endpoints._controller_instance = build_components()
            logging.info("Lifespan: Exchange controller initialized.")
        else:
            logging.info("Lifespan: Components already provided; skipping initialization.")
    except Exception:
        logging.exception("FATAL: Error during application startup initialization.")

    yield

    # --- Shutdown ---
    logging.info("Application shutdown sequence initiated...")
    if endpoints._controller_instance and endpoints._controller_instance.authentication_pending:
        logging.warning("Shutting down with an authentication still outstanding; its result will be dropped.")
    logging.info("Application shutdown complete.")

app = FastAPI(
    title="Credential Exchange API",
    description="Export an identity keypair as a scannable payload or link, and import one to sign in on another device.",
    version="1.0.0",
    lifespan=lifespan
)

origins = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",")
logging.info(f"CORS allowed origins: {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logging.error(f"HTTP Exception: Status Code={exc.status_code}, Detail={exc.detail}, Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": f"An error occurred: {exc.detail}"},
    )

@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logging.exception(f"Unhandled Exception at Path {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"message": "An unexpected internal server error occurred. Please check server logs."},
    )

app.get(
    "/exchange/state", response_model=ExchangeStateResponse, summary="Get Current Exchange State",
    tags=["Exchange"]
)(endpoints.get_state)

app.post(
    "/exchange/mode", response_model=ExchangeStateResponse, summary="Switch Between Export and Import",
    tags=["Exchange"]
)(endpoints.select_mode)

app.post(
    "/exchange/export", response_model=ExchangeStateResponse, summary="Export Keypair as Raw Payload or Link",
    tags=["Export"]
)(endpoints.export_credentials)

app.post(
    "/exchange/scan/start", response_model=ExchangeStateResponse, summary="Start Waiting for a Scan",
    tags=["Import"]
)(endpoints.start_scan)

app.post(
    "/exchange/scan", response_model=ExchangeStateResponse, summary="Submit a Scanned Payload",
    tags=["Import"]
)(endpoints.submit_scan)

app.post(
    "/exchange/scan/error", response_model=ExchangeStateResponse, summary="Report a Scanner Failure",
    tags=["Import"]
)(endpoints.report_scan_error)

app.post(
    "/exchange/scan/cancel", response_model=ExchangeStateResponse, summary="Cancel the Current Import",
    tags=["Import"]
)(endpoints.cancel_scan)

app.get("/", summary="Root endpoint and magic link landing", tags=["General"])(endpoints.magic_link_landing)

if __name__ == "__main__":
    logging.info("Starting Credential Exchange API server using Uvicorn...")
    log_level = os.getenv("LOG_LEVEL", "info").lower()
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload_enabled = os.getenv("RELOAD", "false").lower() == "true"

    logging.info(f"Server starting on {host}:{port} with log level {log_level} and reload {'enabled' if reload_enabled else 'disabled'}")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        log_level=log_level,
        reload=reload_enabled
    )
