"""Import validation tests."""

import pytest

from exchange.errors import EnvelopeValidationError, ExchangeErrorKind
from exchange.models import CredentialEnvelope, PairFields
from exchange.validator import ImportValidator


def _envelope(pair_dict, kind="credential-envelope", version="1.0"):
    return CredentialEnvelope(kind=kind, schema_version=version, keypair=PairFields(**pair_dict), display_name="alice")


def test_valid_envelope_yields_embedded_keypair(validator, keypair, pair_dict):
    envelope = _envelope(pair_dict)

    assert validator.validate(envelope) == keypair
    assert envelope.keypair == PairFields(**pair_dict)


def test_wrong_type(validator, pair_dict):
    with pytest.raises(EnvelopeValidationError) as exc_info:
        validator.validate(_envelope(pair_dict, kind="other"))

    assert exc_info.value.kind == ExchangeErrorKind.WRONG_TYPE


def test_wrong_type_is_reported_before_version(validator, pair_dict):
    with pytest.raises(EnvelopeValidationError) as exc_info:
        validator.validate(_envelope(pair_dict, kind="shogun-auth-pair", version="9.9"))

    assert exc_info.value.kind == ExchangeErrorKind.WRONG_TYPE


@pytest.mark.parametrize("version", ["2.0", "1.0.1", "", "1"])
def test_unknown_version_rejected_even_with_complete_keypair(validator, pair_dict, version):
    with pytest.raises(EnvelopeValidationError) as exc_info:
        validator.validate(_envelope(pair_dict, version=version))

    assert exc_info.value.kind == ExchangeErrorKind.UNSUPPORTED_VERSION


@pytest.mark.parametrize("missing", ["pub", "priv", "epub", "epriv"])
def test_incomplete_keypair(validator, pair_dict, missing):
    partial = {k: v for k, v in pair_dict.items() if k != missing}

    with pytest.raises(EnvelopeValidationError) as exc_info:
        validator.validate(_envelope(partial))

    assert exc_info.value.kind == ExchangeErrorKind.INCOMPLETE_KEYPAIR


def test_empty_field_counts_as_missing(validator, pair_dict):
    with pytest.raises(EnvelopeValidationError) as exc_info:
        validator.validate(_envelope(dict(pair_dict, priv="")))

    assert exc_info.value.kind == ExchangeErrorKind.INCOMPLETE_KEYPAIR


def test_additional_supported_versions_can_be_configured(pair_dict, keypair):
    validator = ImportValidator(supported_versions={"1.0", "1.1"})

    assert validator.validate(_envelope(pair_dict, version="1.1")) == keypair


def test_null_pair_is_incomplete(validator):
    envelope = CredentialEnvelope(kind="credential-envelope", schema_version="1.0", keypair=None)

    with pytest.raises(EnvelopeValidationError) as exc_info:
        validator.validate(envelope)

    assert exc_info.value.kind == ExchangeErrorKind.INCOMPLETE_KEYPAIR
