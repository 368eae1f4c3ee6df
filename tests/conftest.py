"""Shared fixtures for the credential exchange tests."""

import pytest

from exchange.codec import EnvelopeCodec
from exchange.controller import ExchangeController
from exchange.models import Keypair
from exchange.resolver import KeypairResolver, default_sources
from exchange.validator import ImportValidator
from identity.session import Session
from identity.storage import LegacyKeyValueStore, SecureKeyStorage
from tests.helpers import BASE_URL, FIXED_NOW_MS, StubAuthenticator


@pytest.fixture
def keypair():
    return Keypair(
        pub="Qm9iU2lnbmluZ1B1YmxpY0tleQ.xyz",
        priv="c2lnbmluZy1wcml2YXRl",
        epub="ZW5jcnlwdGlvbi1wdWJsaWM.abc",
        epriv="ZW5jcnlwdGlvbi1wcml2YXRl",
    )


@pytest.fixture
def pair_dict(keypair):
    return keypair.model_dump(by_alias=True)


@pytest.fixture
def account(keypair):
    return Session(alias="alice", public_key=keypair.signing_public)


@pytest.fixture
def codec():
    return EnvelopeCodec(base_url=BASE_URL, clock=lambda: FIXED_NOW_MS)


@pytest.fixture
def validator():
    return ImportValidator()


@pytest.fixture
def secure_storage(tmp_path):
    return SecureKeyStorage(str(tmp_path / "identity_keypair.json"))


@pytest.fixture
def legacy_store(tmp_path):
    return LegacyKeyValueStore(str(tmp_path / "local_storage.json"))


@pytest.fixture
def resolver(secure_storage, legacy_store):
    return KeypairResolver(default_sources(secure_storage, legacy_store))


@pytest.fixture
def make_controller(resolver, codec, validator):
    def _make(authenticator):
        return ExchangeController(resolver, codec, validator, authenticator)
    return _make


@pytest.fixture
def stub_authenticator():
    return StubAuthenticator()
