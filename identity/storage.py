# --- File: identity/storage.py ---
import json
import os
import logging
from typing import Dict, Optional

import config
from exchange.models import Keypair
from utils import key_fingerprint

logger = logging.getLogger(__name__)


def _ensure_parent_dir(path: str):
    parent = os.path.dirname(path)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)
        logger.info(f"Created directory for storage file: {parent}")


class SecureKeyStorage:
    """
    Authoritative storage for the local identity keypair.
    Holds a single SEA-shaped pair (`pub`, `priv`, `epub`, `epriv`) in a JSON file.
    """
    def __init__(self, file_path: str = config.SECURE_STORAGE_FILE):
        self.file_path = file_path

    def get_pair_sync(self) -> Optional[Dict[str, str]]:
        """Returns the stored pair as a dict, or None if nothing usable is stored."""
        if not os.path.exists(self.file_path):
            logger.debug(f"No secure keypair file at {self.file_path}")
            return None
        try:
            with open(self.file_path, 'r') as f:
                data = json.load(f)
        except (IOError, ValueError) as e: # JSONDecodeError and UnicodeDecodeError are ValueErrors
            logger.error(f"Error loading keypair from {self.file_path}: {e}")
            return None
        if not isinstance(data, dict):
            logger.error(f"Secure keypair file {self.file_path} does not contain an object.")
            return None
        return data

    def store_pair(self, keypair: Keypair):
        """Replaces the stored pair."""
        _ensure_parent_dir(self.file_path)
        tmp_path = f"{self.file_path}.tmp"
        with open(tmp_path, 'w') as f:
            json.dump(keypair.model_dump(by_alias=True), f, indent=4)
        os.replace(tmp_path, self.file_path)
        logger.info(f"Keypair {key_fingerprint(keypair.signing_public)} saved to {self.file_path}")

    def clear(self):
        if os.path.exists(self.file_path):
            os.remove(self.file_path)
            logger.info(f"Removed secure keypair file {self.file_path}")


class LegacyKeyValueStore:
    """
    Text key/value store kept for installs that persisted the keypair
    the old way. Values are opaque strings; callers parse them.
    """
    def __init__(self, file_path: str = config.LEGACY_STORE_FILE):
        self.file_path = file_path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.file_path):
            return {}
        with open(self.file_path, 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Legacy store {self.file_path} is not a key/value object")
        return data

    def get_item(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError(f"Legacy store value for '{key}' is not text")
        return value

    def set_item(self, key: str, value: str):
        try:
            data = self._load()
        except (IOError, ValueError) as e:
            logger.warning(f"Legacy store {self.file_path} unreadable ({e}); rewriting it.")
            data = {}
        data[key] = value
        _ensure_parent_dir(self.file_path)
        with open(self.file_path, 'w') as f:
            json.dump(data, f, indent=4)

    def remove_item(self, key: str):
        data = self._load()
        if key in data:
            del data[key]
            with open(self.file_path, 'w') as f:
                json.dump(data, f, indent=4)
