# --- File: identity/session.py ---
import hmac
import json
import os
import uuid
import logging
from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel, Field

import config
from exchange.errors import AuthenticationError
from exchange.models import Keypair
from exchange.state import ExchangePhase, ExchangeState
from identity.storage import SecureKeyStorage
from utils import key_fingerprint, now_ms, secret_digest

logger = logging.getLogger(__name__)


class Session(BaseModel):
    """An authenticated account on this device."""
    alias: Optional[str] = Field(None, description="Public alias of the account, if it has one.")
    public_key: str = Field(..., description="Signing public key identifying the account.")
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    authenticated_at: int = Field(default_factory=now_ms, description="Milliseconds since epoch.")
    # Older clients attached the raw pair to the session object
    legacy_sea: Optional[Dict[str, Any]] = Field(None, repr=False, exclude=True)


class Authenticator(Protocol):
    async def authenticate(self, keypair: Keypair) -> Session:
        """Establishes a session for `keypair` or raises AuthenticationError."""
        ...


class SessionManager:
    """
    Authenticates keypairs against the registry of known identities and
    tracks the active session of this device.
    """
    def __init__(self,
                 storage: SecureKeyStorage,
                 registry_path: str = config.KNOWN_IDENTITIES_FILE):
        self.storage = storage
        self.registry_path = registry_path
        self.identities: Dict[str, Dict[str, Any]] = {}
        self.active: Optional[Session] = None
        self._load_registry()

    def _load_registry(self):
        if not os.path.exists(self.registry_path):
            logger.info(f"No identity registry at {self.registry_path}; starting empty.")
            return
        try:
            with open(self.registry_path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("registry root is not an object")
            self.identities = data
            logger.info(f"Loaded {len(self.identities)} known identities from {self.registry_path}")
        except (IOError, ValueError) as e:
            logger.error(f"Error loading identity registry from {self.registry_path}: {e}. No identities will authenticate.")
            self.identities = {}

    def _save_registry(self):
        parent = os.path.dirname(self.registry_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(self.registry_path, 'w') as f:
            json.dump(self.identities, f, indent=4)

    def register_identity(self, keypair: Keypair, alias: Optional[str] = None):
        """
        Adds (or replaces) a known identity. Public keys are recorded as-is;
        the private halves only as SHA-256 digests.
        """
        self.identities[keypair.signing_public] = {
            "alias": alias,
            "epub": keypair.encryption_public,
            "priv_digest": secret_digest(keypair.signing_private),
            "epriv_digest": secret_digest(keypair.encryption_private),
        }
        self._save_registry()
        logger.info(f"Registered identity {key_fingerprint(keypair.signing_public)} (alias: {alias})")

    async def authenticate(self, keypair: Keypair) -> Session:
        """
        Checks `keypair` against the registry and returns a new Session.
        Nothing is stored and no session is activated here; see `activate`.
        """
        fingerprint = key_fingerprint(keypair.signing_public)
        entry = self.identities.get(keypair.signing_public)
        if entry is None:
            logger.warning(f"Authentication rejected for {fingerprint}: unknown identity.")
            raise AuthenticationError("Unknown identity.")
        if entry.get("epub") != keypair.encryption_public:
            logger.warning(f"Authentication rejected for {fingerprint}: encryption key mismatch.")
            raise AuthenticationError("Encryption key does not match the registered identity.")
        if not (_digest_matches(entry.get("priv_digest"), keypair.signing_private)
                and _digest_matches(entry.get("epriv_digest"), keypair.encryption_private)):
            logger.warning(f"Authentication rejected for {fingerprint}: private keys do not match.")
            raise AuthenticationError("Private keys do not match the registered identity.")

        session = Session(alias=entry.get("alias"), public_key=keypair.signing_public)
        logger.info(f"Verified {fingerprint} as '{session.alias}' (session {session.session_id}).")
        return session

    def activate(self, session: Session, keypair: Keypair):
        """Persists the imported pair and makes `session` the active one."""
        self.storage.store_pair(keypair)
        self.active = session
        logger.info(f"Session {session.session_id} active for '{session.alias}'.")

    def on_exchange_state(self, state: ExchangeState):
        """Controller listener: commits an import once the controller has applied Authenticated."""
        if state.phase != ExchangePhase.AUTHENTICATED:
            return
        if not isinstance(state.session, Session) or state.keypair is None:
            logger.warning("Authenticated state without a session or keypair; nothing to activate.")
            return
        self.activate(state.session, state.keypair)

    def logout(self):
        if self.active:
            logger.info(f"Session {self.active.session_id} ended.")
        self.active = None


def _digest_matches(expected: Optional[str], secret: str) -> bool:
    if not isinstance(expected, str) or not expected.isascii():
        return False
    return hmac.compare_digest(expected, secret_digest(secret))
