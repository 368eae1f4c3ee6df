# --- File: exchange/resolver.py ---
import json
import logging
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

import config
from exchange.models import Keypair
from utils import key_fingerprint

if TYPE_CHECKING:
    from identity.session import Session
    from identity.storage import LegacyKeyValueStore, SecureKeyStorage

logger = logging.getLogger(__name__)


class KeypairSource:
    """One storage tier the resolver can read a keypair from."""
    name = "source"

    def fetch(self, account: "Session") -> Any:
        """Returns a SEA-shaped structure or None. Must not write anywhere."""
        raise NotImplementedError


class SecureStorageSource(KeypairSource):
    """Authoritative storage exposed by the identity layer."""
    name = "secure_storage"

    def __init__(self, storage: "SecureKeyStorage"):
        self.storage = storage

    def fetch(self, account: "Session") -> Any:
        if self.storage is None or not callable(getattr(self.storage, "get_pair_sync", None)):
            return None
        return self.storage.get_pair_sync()


class LegacyStoreSource(KeypairSource):
    """Keypair persisted as JSON text by older clients. Corrupt data counts as empty."""
    name = "legacy_store"

    def __init__(self, store: "LegacyKeyValueStore", key: str = config.LEGACY_KEYPAIR_KEY):
        self.store = store
        self.key = key

    def fetch(self, account: "Session") -> Any:
        try:
            stored = self.store.get_item(self.key)
            if not stored:
                return None
            return json.loads(stored)
        except (IOError, ValueError, RecursionError) as e: # JSONDecodeError is a ValueError
            logger.warning(f"Could not read keypair from legacy store '{self.key}': {e}")
            return None


class SessionFieldsSource(KeypairSource):
    """Pair fields attached to the session object itself (historical clients only)."""
    name = "session_fields"

    def fetch(self, account: "Session") -> Any:
        return getattr(account, "legacy_sea", None)


class KeypairResolver:
    """
    Locates the active account's keypair by trying each source in order and
    returning the first complete one. Partial pairs are skipped, never returned.
    """
    def __init__(self, sources: Sequence[KeypairSource]):
        self.sources: List[KeypairSource] = list(sources)

    def resolve(self, account: Optional["Session"]) -> Optional[Keypair]:
        if account is None or not getattr(account, "public_key", None):
            logger.warning("Keypair resolution requested without an authenticated account.")
            return None

        for source in self.sources:
            candidate = source.fetch(account)
            if candidate is None:
                logger.debug(f"Source '{source.name}' has no keypair.")
                continue
            keypair = Keypair.from_fields(candidate)
            if keypair is None:
                logger.warning(f"Source '{source.name}' returned an incomplete keypair; trying next source.")
                continue
            logger.info(f"Resolved keypair {key_fingerprint(keypair.signing_public)} from '{source.name}'.")
            return keypair

        logger.warning(f"No complete keypair found for account {key_fingerprint(account.public_key)} in {[s.name for s in self.sources]}.")
        return None


def default_sources(storage: "SecureKeyStorage", legacy_store: "LegacyKeyValueStore") -> List[KeypairSource]:
    """Sources in precedence order: secure storage, legacy store, session fields."""
    return [
        SecureStorageSource(storage),
        LegacyStoreSource(legacy_store),
        SessionFieldsSource(),
    ]
