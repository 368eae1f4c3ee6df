# --- File: exchange/errors.py ---
from enum import Enum
from typing import Optional


class ExchangeErrorKind(str, Enum):
    """Failure kinds an export or import attempt can end in."""
    NO_CREDENTIAL = "NoCredential"
    MALFORMED_PAYLOAD = "MalformedPayload"
    WRONG_TYPE = "WrongType"
    UNSUPPORTED_VERSION = "UnsupportedVersion"
    INCOMPLETE_KEYPAIR = "IncompleteKeypair"
    AUTHENTICATION_REJECTED = "AuthenticationRejected"
    SCAN_ERROR = "ScanError"


USER_MESSAGES = {
    ExchangeErrorKind.NO_CREDENTIAL: "Keypair not available - try logging in again.",
    ExchangeErrorKind.MALFORMED_PAYLOAD: "The scanned code is not a valid credential export.",
    ExchangeErrorKind.WRONG_TYPE: "Invalid QR code format.",
    ExchangeErrorKind.UNSUPPORTED_VERSION: "This credential export was made by an unsupported version.",
    ExchangeErrorKind.INCOMPLETE_KEYPAIR: "Invalid key pair structure.",
    ExchangeErrorKind.AUTHENTICATION_REJECTED: "Login failed: the imported keys were rejected.",
    ExchangeErrorKind.SCAN_ERROR: "Error during scanning. Make sure the camera is available.",
}


def user_message(kind: ExchangeErrorKind) -> str:
    return USER_MESSAGES.get(kind, "Credential exchange failed.")


class ExchangeError(Exception):
    """Base class for all credential exchange errors."""
    def __init__(self, kind: ExchangeErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail or user_message(kind)
        super().__init__(self.detail)


class DecodeError(ExchangeError):
    """Raised when transport text is not JSON or not an envelope-shaped object."""
    def __init__(self, detail: Optional[str] = None):
        super().__init__(ExchangeErrorKind.MALFORMED_PAYLOAD, detail)


class EnvelopeValidationError(ExchangeError):
    """Raised when a decoded envelope fails type, version or keypair checks."""


class AuthenticationError(ExchangeError):
    """Raised by an authenticator that rejects a keypair."""
    def __init__(self, detail: Optional[str] = None):
        super().__init__(ExchangeErrorKind.AUTHENTICATION_REJECTED, detail)
