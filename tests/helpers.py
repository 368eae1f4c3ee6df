"""Test doubles and constants shared across test modules."""

import asyncio
import json

from exchange.errors import AuthenticationError
from identity.session import Session

FIXED_NOW_MS = 1_700_000_000_000
BASE_URL = "https://app.example.com"


class StubAuthenticator:
    """Accepts or rejects immediately."""
    def __init__(self, accept=True):
        self.accept = accept
        self.calls = []

    async def authenticate(self, keypair):
        self.calls.append(keypair)
        if not self.accept:
            raise AuthenticationError("rejected by stub")
        return Session(alias="imported", public_key=keypair.signing_public)


class GatedAuthenticator:
    """Suspends every handshake until the test resolves it."""
    def __init__(self):
        self.started = asyncio.Event()
        self.calls = []
        self._future = None

    async def authenticate(self, keypair):
        self.calls.append(keypair)
        self._future = asyncio.get_running_loop().create_future()
        self.started.set()
        return await self._future

    def succeed(self, session):
        self._future.set_result(session)

    def reject(self):
        self._future.set_exception(AuthenticationError("rejected late"))


class ExplodingAuthenticator:
    """Fails with an error that is not an AuthenticationError."""
    async def authenticate(self, keypair):
        raise RuntimeError("backend unreachable")


def write_legacy_text(store, key, text):
    """Writes raw text under `key`, bypassing any validation."""
    with open(store.file_path, "w") as f:
        json.dump({key: text}, f)
