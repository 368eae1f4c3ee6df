# --- File: exchange/validator.py ---
import logging
from typing import Iterable, Optional

import config
from exchange.errors import EnvelopeValidationError, ExchangeErrorKind
from exchange.models import PAIR_WIRE_KEYS, CredentialEnvelope, Keypair

logger = logging.getLogger(__name__)


class ImportValidator:
    """
    Checks a decoded envelope before its keypair is trusted.
    Checks run in order: type, version, keypair completeness.
    """
    def __init__(self,
                 kind: str = config.ENVELOPE_KIND,
                 supported_versions: Optional[Iterable[str]] = None):
        self.kind = kind
        self.supported_versions = frozenset(supported_versions or config.SUPPORTED_SCHEMA_VERSIONS)

    def validate(self, envelope: CredentialEnvelope) -> Keypair:
        if envelope.kind != self.kind:
            logger.warning(f"Rejected envelope of type '{envelope.kind}' (expected '{self.kind}').")
            raise EnvelopeValidationError(ExchangeErrorKind.WRONG_TYPE)

        # No migration between versions; unknown versions are refused outright
        if envelope.schema_version not in self.supported_versions:
            logger.warning(f"Rejected envelope version '{envelope.schema_version}' (supported: {sorted(self.supported_versions)}).")
            raise EnvelopeValidationError(ExchangeErrorKind.UNSUPPORTED_VERSION)

        keypair = Keypair.from_fields(envelope.keypair)
        if keypair is None:
            if envelope.keypair is None:
                missing = list(PAIR_WIRE_KEYS)
            else:
                missing = [k for k, v in envelope.keypair.model_dump().items() if not v]
            logger.warning(f"Rejected envelope with incomplete keypair (missing: {missing}).")
            raise EnvelopeValidationError(ExchangeErrorKind.INCOMPLETE_KEYPAIR)

        return keypair
