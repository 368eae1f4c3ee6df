# --- File: exchange/state.py ---
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from exchange.errors import ExchangeErrorKind, user_message
from exchange.models import CredentialEnvelope, Keypair, TransportEncoding


class ExchangeMode(str, Enum):
    EXPORT = "export"
    IMPORT = "import"


class ExchangePhase(str, Enum):
    IDLE = "Idle"
    EXPORTING = "Exporting"
    AWAITING_SCAN = "AwaitingScan"
    IMPORTING = "Importing"
    AUTHENTICATED = "Authenticated"
    FAILED = "Failed"


class ExchangeState(BaseModel):
    """
    Snapshot of the controller for the current operation.
    Only the field belonging to `phase` is set.
    """
    model_config = ConfigDict(frozen=True)

    phase: ExchangePhase = ExchangePhase.IDLE
    encoding: Optional[TransportEncoding] = None
    envelope: Optional[CredentialEnvelope] = Field(None, exclude=True) # carries private keys
    session: Optional[Any] = Field(None, exclude=True)
    keypair: Optional[Keypair] = Field(None, exclude=True, repr=False) # committed by listeners on Authenticated
    error_kind: Optional[ExchangeErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> "ExchangeState":
        return cls()

    @classmethod
    def exporting(cls, encoding: TransportEncoding) -> "ExchangeState":
        return cls(phase=ExchangePhase.EXPORTING, encoding=encoding)

    @classmethod
    def awaiting_scan(cls) -> "ExchangeState":
        return cls(phase=ExchangePhase.AWAITING_SCAN)

    @classmethod
    def importing(cls, envelope: CredentialEnvelope) -> "ExchangeState":
        return cls(phase=ExchangePhase.IMPORTING, envelope=envelope)

    @classmethod
    def authenticated(cls, session: Any, keypair: Optional[Keypair] = None) -> "ExchangeState":
        return cls(phase=ExchangePhase.AUTHENTICATED, session=session, keypair=keypair,
                   message="Login successful! Your keys have been imported.")

    @classmethod
    def failed(cls, kind: ExchangeErrorKind, message: Optional[str] = None) -> "ExchangeState":
        return cls(phase=ExchangePhase.FAILED, error_kind=kind, message=message or user_message(kind))
