"""Tests for keypair resolution across storage tiers."""

import json
import os

import pytest

import config
from exchange.resolver import KeypairResolver, KeypairSource
from identity.session import Session
from tests.helpers import write_legacy_text


def test_secure_storage_wins_over_other_tiers(resolver, secure_storage, legacy_store, keypair, pair_dict):
    secure_storage.store_pair(keypair)
    other = dict(pair_dict, pub="legacy-pub")
    legacy_store.set_item(config.LEGACY_KEYPAIR_KEY, json.dumps(other))
    account = Session(alias="alice", public_key=keypair.signing_public, legacy_sea=dict(pair_dict, pub="session-pub"))

    assert resolver.resolve(account) == keypair


def test_falls_back_to_legacy_store(resolver, legacy_store, keypair, pair_dict, account):
    legacy_store.set_item(config.LEGACY_KEYPAIR_KEY, json.dumps(pair_dict))

    assert resolver.resolve(account) == keypair


def test_corrupt_legacy_store_does_not_block_session_fields(resolver, legacy_store, keypair, pair_dict):
    write_legacy_text(legacy_store, config.LEGACY_KEYPAIR_KEY, "{not json")
    account = Session(alias="alice", public_key=keypair.signing_public, legacy_sea=pair_dict)

    assert resolver.resolve(account) == keypair


def test_corrupt_legacy_file_counts_as_empty(resolver, legacy_store, keypair, pair_dict):
    with open(legacy_store.file_path, "w") as f:
        f.write("garbage")
    account = Session(public_key=keypair.signing_public, legacy_sea=pair_dict)

    assert resolver.resolve(account) == keypair


def test_corrupt_legacy_does_not_affect_valid_secure_storage(resolver, secure_storage, legacy_store, keypair, account):
    secure_storage.store_pair(keypair)
    write_legacy_text(legacy_store, config.LEGACY_KEYPAIR_KEY, "][")

    assert resolver.resolve(account) == keypair


@pytest.mark.parametrize("missing", ["pub", "priv", "epub", "epriv"])
def test_partial_pairs_are_never_returned(resolver, secure_storage, legacy_store, pair_dict, keypair, missing):
    partial = {k: v for k, v in pair_dict.items() if k != missing}
    with open(secure_storage.file_path, "w") as f:
        json.dump(partial, f)
    legacy_store.set_item(config.LEGACY_KEYPAIR_KEY, json.dumps(dict(pair_dict, **{missing: ""})))
    account = Session(public_key=keypair.signing_public, legacy_sea=partial)

    assert resolver.resolve(account) is None


def test_partial_first_tier_falls_through_to_complete_later_tier(resolver, secure_storage, pair_dict, keypair):
    with open(secure_storage.file_path, "w") as f:
        json.dump(dict(pair_dict, epriv=""), f)
    account = Session(public_key=keypair.signing_public, legacy_sea=pair_dict)

    assert resolver.resolve(account) == keypair


def test_not_found_when_every_tier_is_empty(resolver, account):
    assert resolver.resolve(account) is None


def test_no_account_is_not_found(resolver, secure_storage, keypair):
    secure_storage.store_pair(keypair)

    assert resolver.resolve(None) is None


def test_resolution_is_read_only(resolver, secure_storage, legacy_store, keypair, pair_dict, account):
    write_legacy_text(legacy_store, config.LEGACY_KEYPAIR_KEY, json.dumps(pair_dict))

    resolver.resolve(account)

    assert not os.path.exists(secure_storage.file_path)
    with open(legacy_store.file_path) as f:
        assert json.load(f) == {config.LEGACY_KEYPAIR_KEY: json.dumps(pair_dict)}


def test_sources_are_tried_in_list_order(keypair, pair_dict, account):
    seen = []

    class Recording(KeypairSource):
        def __init__(self, name, result):
            self.name = name
            self.result = result

        def fetch(self, account):
            seen.append(self.name)
            return self.result

    resolver = KeypairResolver([
        Recording("first", None),
        Recording("second", {"pub": "only-pub"}),
        Recording("third", pair_dict),
        Recording("fourth", pair_dict),
    ])

    assert resolver.resolve(account) == keypair
    assert seen == ["first", "second", "third"]
