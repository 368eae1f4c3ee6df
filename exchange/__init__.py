from .models import Keypair, CredentialEnvelope, TransportEncoding, TransportFormat
from .errors import ExchangeError, ExchangeErrorKind, DecodeError, EnvelopeValidationError, AuthenticationError
from .resolver import KeypairResolver, KeypairSource, default_sources
from .codec import EnvelopeCodec
from .validator import ImportValidator
from .state import ExchangeMode, ExchangePhase, ExchangeState
from .controller import ExchangeController

__all__ = [
    "Keypair", "CredentialEnvelope", "TransportEncoding", "TransportFormat",
    "ExchangeError", "ExchangeErrorKind", "DecodeError", "EnvelopeValidationError", "AuthenticationError",
    "KeypairResolver", "KeypairSource", "default_sources",
    "EnvelopeCodec", "ImportValidator",
    "ExchangeMode", "ExchangePhase", "ExchangeState", "ExchangeController",
]
