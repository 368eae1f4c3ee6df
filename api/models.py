from pydantic import BaseModel, Field
from typing import Optional

from exchange.errors import ExchangeErrorKind
from exchange.models import TransportEncoding
from exchange.state import ExchangeMode, ExchangePhase, ExchangeState

# --- API Request/Response Models (using Pydantic) ---

PRIVATE_KEY_WARNING = "Warning: this {what} contains your private keys. Never share it publicly!"


class ModeRequest(BaseModel):
    """Request model for switching between export and import."""
    mode: ExchangeMode = Field(..., description="'export' or 'import'")

class ExportRequest(BaseModel):
    """Request model for the export endpoint."""
    format: str = Field(default='raw', description="Transport format ('raw' or 'link'; 'json' is accepted for raw)")

class ScanRequest(BaseModel):
    """Request model carrying one scanned payload."""
    payload: str = Field(..., description="Scanned text: raw envelope JSON or a shared link")

class ScanErrorRequest(BaseModel):
    """Request model for scan collaborator error notifications."""
    message: Optional[str] = Field(None, description="Description of the scanner failure (e.g. camera unavailable)")

class SessionInfo(BaseModel):
    alias: Optional[str] = None
    public_key: str
    session_id: str

class ExchangeStateResponse(BaseModel):
    """Response model describing the controller state."""
    mode: ExchangeMode
    phase: ExchangePhase
    encoding: Optional[TransportEncoding] = Field(None, description="Set while exporting")
    display_name: Optional[str] = Field(None, description="Alias of the envelope being imported")
    session: Optional[SessionInfo] = Field(None, description="Set once authenticated")
    error_kind: Optional[ExchangeErrorKind] = None
    message: Optional[str] = None
    warning: Optional[str] = Field(None, description="Shown alongside exported credentials")

    @classmethod
    def from_state(cls, mode: ExchangeMode, state: ExchangeState) -> "ExchangeStateResponse":
        session_info = None
        if state.session is not None:
            session_info = SessionInfo(
                alias=getattr(state.session, "alias", None),
                public_key=getattr(state.session, "public_key", ""),
                session_id=getattr(state.session, "session_id", ""),
            )
        warning = None
        if state.encoding is not None:
            warning = PRIVATE_KEY_WARNING.format(what="link" if state.encoding.is_link else "QR code")
        return cls(
            mode=mode,
            phase=state.phase,
            encoding=state.encoding,
            display_name=state.envelope.display_name if state.envelope is not None else None,
            session=session_info,
            error_kind=state.error_kind,
            message=state.message,
            warning=warning,
        )
