# --- File: exchange/controller.py ---
import asyncio
import logging
from typing import TYPE_CHECKING, Callable, List, Optional

from exchange.codec import EnvelopeCodec
from exchange.errors import (
    AuthenticationError, DecodeError, EnvelopeValidationError, ExchangeErrorKind
)
from exchange.models import TransportFormat
from exchange.resolver import KeypairResolver
from exchange.state import ExchangeMode, ExchangePhase, ExchangeState
from exchange.validator import ImportValidator
from utils import key_fingerprint

if TYPE_CHECKING:
    from identity.session import Authenticator, Session

logger = logging.getLogger(__name__)

StateListener = Callable[[ExchangeState], None]


class ExchangeController:
    """
    State machine coordinating credential export and import.

    One operation is in flight at a time. Every user action that starts,
    cancels or switches an operation bumps the attempt counter; an
    authentication result is applied only if its attempt is still current.
    """
    def __init__(self,
                 resolver: KeypairResolver,
                 codec: EnvelopeCodec,
                 validator: ImportValidator,
                 authenticator: "Authenticator"):
        self.resolver = resolver
        self.codec = codec
        self.validator = validator
        self.authenticator = authenticator
        self.mode = ExchangeMode.EXPORT
        self.state = ExchangeState.idle()
        self._attempt = 0
        self._pending_auth: Optional[asyncio.Task] = None
        self._listeners: List[StateListener] = []

    # --- Plumbing ---

    def subscribe(self, listener: StateListener):
        """Registers a callback invoked with every new state."""
        self._listeners.append(listener)

    def _set_state(self, new_state: ExchangeState) -> ExchangeState:
        previous = self.state.phase
        self.state = new_state
        logger.debug(f"Exchange state {previous.value} -> {new_state.phase.value}")
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("State listener raised; continuing.")
        return new_state

    def _fail(self, kind: ExchangeErrorKind, message: Optional[str] = None) -> ExchangeState:
        logger.warning(f"Exchange failed: {kind.value}")
        return self._set_state(ExchangeState.failed(kind, message))

    @property
    def authentication_pending(self) -> bool:
        return self._pending_auth is not None and not self._pending_auth.done()

    # --- Mode handling ---

    def select_mode(self, mode: ExchangeMode) -> ExchangeState:
        """Switches between export and import. Always resets to Idle and clears any error."""
        self._attempt += 1
        if mode != self.mode:
            logger.info(f"Exchange mode switched {self.mode.value} -> {mode.value}")
        self.mode = mode
        return self._set_state(ExchangeState.idle())

    # --- Export path ---

    def export(self, account: Optional["Session"], transport_format: TransportFormat) -> ExchangeState:
        """Resolves the account's keypair and encodes it. Calling again with a new format recomputes."""
        if self.mode != ExchangeMode.EXPORT:
            self.select_mode(ExchangeMode.EXPORT)
        self._attempt += 1

        if account is None:
            return self._fail(ExchangeErrorKind.NO_CREDENTIAL, "User not authenticated.")

        keypair = self.resolver.resolve(account)
        if keypair is None:
            return self._fail(ExchangeErrorKind.NO_CREDENTIAL)

        encoding = self.codec.encode(keypair, account.alias, transport_format)
        return self._set_state(ExchangeState.exporting(encoding))

    # --- Import path ---

    def start_scan(self) -> ExchangeState:
        if self.mode != ExchangeMode.IMPORT:
            self.select_mode(ExchangeMode.IMPORT)
        if self.state.phase == ExchangePhase.IMPORTING:
            logger.info("Scan start ignored: an import is already in progress.")
            return self.state
        self._attempt += 1
        return self._set_state(ExchangeState.awaiting_scan())

    def scan_failed(self, reason: Optional[str] = None) -> ExchangeState:
        """Called by the scan collaborator when it cannot produce input (e.g. no camera)."""
        if self.state.phase != ExchangePhase.AWAITING_SCAN:
            logger.debug(f"Scan error ignored in state {self.state.phase.value}: {reason}")
            return self.state
        logger.error(f"QR scan error: {reason}")
        return self._fail(ExchangeErrorKind.SCAN_ERROR)

    async def submit_scan(self, payload: str) -> ExchangeState:
        """
        Handles one scanned payload: decode, validate, then authenticate.
        Input arriving outside AwaitingScan, or while a previous handshake is
        still outstanding, is ignored.
        """
        if self.state.phase != ExchangePhase.AWAITING_SCAN:
            logger.info(f"Scanned payload ignored in state {self.state.phase.value}.")
            return self.state
        if self.authentication_pending:
            logger.info("Scanned payload ignored: an earlier authentication is still outstanding.")
            return self.state

        attempt = self._attempt

        try:
            envelope = self.codec.decode(payload)
        except DecodeError as e:
            logger.warning(f"Scanned payload could not be decoded: {e.detail}")
            return self._fail(e.kind)
        self._set_state(ExchangeState.importing(envelope))

        try:
            keypair = self.validator.validate(envelope)
        except EnvelopeValidationError as e:
            return self._fail(e.kind)

        logger.info(f"Authenticating imported keypair {key_fingerprint(keypair.signing_public)}...")
        task = asyncio.ensure_future(self.authenticator.authenticate(keypair))
        self._pending_auth = task
        try:
            session = await task
            outcome = ExchangeState.authenticated(session, keypair)
        except asyncio.CancelledError:
            if attempt == self._attempt:
                self._set_state(ExchangeState.idle())
            raise
        except AuthenticationError as e:
            logger.warning(f"Imported keypair rejected: {e.detail}")
            outcome = ExchangeState.failed(ExchangeErrorKind.AUTHENTICATION_REJECTED)
        except Exception as e:
            logger.exception(f"Unexpected error while authenticating imported keypair: {e}")
            outcome = ExchangeState.failed(ExchangeErrorKind.AUTHENTICATION_REJECTED)
        finally:
            if self._pending_auth is task:
                self._pending_auth = None

        if attempt != self._attempt or self.state.phase != ExchangePhase.IMPORTING:
            logger.info(f"Dropping stale authentication result ({outcome.phase.value}); the import was cancelled.")
            return self.state

        return self._set_state(outcome)

    def cancel(self) -> ExchangeState:
        """Cancels a scan or an import in progress. Results arriving later are dropped."""
        if self.state.phase not in (ExchangePhase.AWAITING_SCAN, ExchangePhase.IMPORTING):
            logger.debug(f"Cancel ignored in state {self.state.phase.value}.")
            return self.state
        self._attempt += 1
        logger.info(f"Import cancelled from {self.state.phase.value}.")
        return self._set_state(ExchangeState.idle())
