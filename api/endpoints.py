# --- File: api/endpoints.py ---
from fastapi import HTTPException, Body, Depends, Query
from typing import Optional
from api.models import (
    ModeRequest, ExportRequest, ScanRequest, ScanErrorRequest, ExchangeStateResponse
)
from exchange.controller import ExchangeController
from exchange.models import TransportFormat
from exchange.state import ExchangeMode
from identity.session import SessionManager
import config
import logging

# --- Dependency Injection Setup ---
# Global instances, set by lifespan in main.py
_session_manager_instance: Optional[SessionManager] = None
_controller_instance: Optional[ExchangeController] = None


def get_session_manager() -> SessionManager:
    if _session_manager_instance is None:
        logging.error("SessionManager instance was None! This should have been set by lifespan.")
        raise HTTPException(status_code=503, detail="Identity service not available (lifespan init failed).")
    return _session_manager_instance

def get_controller() -> ExchangeController:
    if _controller_instance is None:
        logging.error("ExchangeController instance was None! This should have been set by lifespan.")
        raise HTTPException(status_code=503, detail="Exchange service not available (lifespan init failed).")
    return _controller_instance


def _state_response(controller: ExchangeController) -> ExchangeStateResponse:
    return ExchangeStateResponse.from_state(controller.mode, controller.state)


# --- API Endpoints ---

async def get_state(controller: ExchangeController = Depends(get_controller)):
    return _state_response(controller)

async def select_mode(
    mode_request: ModeRequest = Body(...),
    controller: ExchangeController = Depends(get_controller)
):
    logging.info(f"Received mode switch request: {mode_request.mode.value}")
    controller.select_mode(mode_request.mode)
    return _state_response(controller)

async def export_credentials(
    export_request: Optional[ExportRequest] = Body(None),
    controller: ExchangeController = Depends(get_controller),
    sessions: SessionManager = Depends(get_session_manager)
):
    export_request = export_request or ExportRequest()
    try:
        transport_format = TransportFormat.parse(export_request.format)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unsupported export format '{export_request.format}'. Use 'raw' or 'link'.")
    logging.info(f"Received export request: format={transport_format.value}")
    controller.export(sessions.active, transport_format)
    return _state_response(controller)

async def start_scan(controller: ExchangeController = Depends(get_controller)):
    controller.start_scan()
    return _state_response(controller)

async def submit_scan(
    scan_request: ScanRequest = Body(...),
    controller: ExchangeController = Depends(get_controller)
):
    logging.info(f"Received scanned payload ({len(scan_request.payload)} chars).")
    await controller.submit_scan(scan_request.payload)
    return _state_response(controller)

async def report_scan_error(
    scan_error: Optional[ScanErrorRequest] = Body(None),
    controller: ExchangeController = Depends(get_controller)
):
    controller.scan_failed(scan_error.message if scan_error else None)
    return _state_response(controller)

async def cancel_scan(controller: ExchangeController = Depends(get_controller)):
    controller.cancel()
    return _state_response(controller)

async def magic_link_landing(
    magic_login: Optional[str] = Query(None, alias=config.MAGIC_LINK_PARAM),
    controller: ExchangeController = Depends(get_controller)
):
    """Opening a shared link imports the credential it carries."""
    if not magic_login:
        return {"message": "Credential exchange service. See /docs for details."}
    logging.info("Magic link opened; importing embedded credential.")
    controller.select_mode(ExchangeMode.IMPORT)
    controller.start_scan()
    # Rebuild the link so the codec's link path handles base64 and '+' quirks
    link = controller.codec.link_for_payload(magic_login)
    await controller.submit_scan(link)
    return _state_response(controller)
