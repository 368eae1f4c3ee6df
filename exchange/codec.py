# --- File: exchange/codec.py ---
import base64
import binascii
import json
import logging
from typing import Callable, Optional
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from pydantic import ValidationError

import config
from exchange.errors import DecodeError
from exchange.models import CredentialEnvelope, Keypair, TransportEncoding, TransportFormat
from utils import display_name_for, key_fingerprint, now_ms

logger = logging.getLogger(__name__)

# Top-level wire keys an object needs before it is treated as an envelope
REQUIRED_ENVELOPE_KEYS = ("type", "version", "pair")


class EnvelopeCodec:
    """
    Builds credential envelopes and converts them to and from their
    transport encodings (raw JSON text or a link carrying base64 JSON).
    """
    def __init__(self,
                 base_url: str = config.APP_BASE_URL,
                 link_param: str = config.MAGIC_LINK_PARAM,
                 kind: str = config.ENVELOPE_KIND,
                 schema_version: str = config.ENVELOPE_SCHEMA_VERSION,
                 clock: Callable[[], int] = now_ms):
        self.base_url = base_url
        self.link_param = link_param
        self.kind = kind
        self.schema_version = schema_version
        self.clock = clock

    def build_envelope(self, keypair: Keypair, alias: Optional[str]) -> CredentialEnvelope:
        return CredentialEnvelope(
            kind=self.kind,
            schema_version=self.schema_version,
            keypair=keypair.to_wire(),
            display_name=display_name_for(alias, keypair.signing_public),
            issued_at=self.clock(),
        )

    def encode(self, keypair: Keypair, alias: Optional[str], transport_format: TransportFormat) -> TransportEncoding:
        """Serializes `keypair` into the requested transport encoding."""
        envelope = self.build_envelope(keypair, alias)
        json_text = envelope.to_json()

        if transport_format == TransportFormat.LINK:
            payload_b64 = base64.b64encode(json_text.encode('utf-8')).decode('ascii')
            url = self.link_for_payload(payload_b64)
            logger.info(f"Encoded keypair {key_fingerprint(keypair.signing_public)} as link export.")
            return TransportEncoding(format=TransportFormat.LINK, value=url)

        logger.info(f"Encoded keypair {key_fingerprint(keypair.signing_public)} as raw export.")
        return TransportEncoding(format=TransportFormat.RAW, value=json_text)

    def link_for_payload(self, payload_b64: str) -> str:
        """Absolute URL on the application origin carrying `payload_b64` as the link parameter."""
        parts = urlsplit(self.base_url)
        # Only the payload parameter is carried; any existing query is replaced
        query = urlencode({self.link_param: payload_b64})
        path = parts.path or "/"
        return urlunsplit((parts.scheme, parts.netloc, path, query, ""))

    def extract_link_payload(self, text: str) -> Optional[str]:
        """Returns the base64 payload if `text` is an absolute URL carrying the link parameter."""
        try:
            parts = urlsplit(text.strip())
        except ValueError:
            return None
        if not (parts.scheme and parts.netloc):
            return None
        values = parse_qs(parts.query).get(self.link_param)
        if not values:
            return None
        return values[0]

    def decode(self, transport_text: str) -> CredentialEnvelope:
        """
        Parses either a raw scanned payload or a shared link back into an envelope.
        Raises DecodeError for anything that is not an envelope-shaped JSON object.
        """
        if not isinstance(transport_text, str) or not transport_text.strip():
            raise DecodeError("Empty payload.")

        json_text = transport_text
        link_payload = self.extract_link_payload(transport_text)
        if link_payload is not None:
            json_text = self._decode_link_payload(link_payload)

        try:
            parsed = json.loads(json_text)
        except (json.JSONDecodeError, RecursionError) as e:
            logger.warning(f"Payload is not valid JSON: {e}")
            raise DecodeError("Payload is not valid JSON.") from e

        if not isinstance(parsed, dict):
            logger.warning(f"Payload JSON is a {type(parsed).__name__}, expected an object.")
            raise DecodeError("Payload is not a JSON object.")

        missing = [key for key in REQUIRED_ENVELOPE_KEYS if key not in parsed]
        if missing:
            logger.warning(f"Payload is missing envelope fields: {missing}")
            raise DecodeError(f"Payload is missing fields: {', '.join(missing)}.")

        try:
            return CredentialEnvelope.model_validate(parsed)
        except ValidationError as e:
            logger.warning(f"Payload fields have unexpected types: {e.error_count()} error(s).")
            raise DecodeError("Payload fields have unexpected types.") from e

    def _decode_link_payload(self, payload_b64: str) -> str:
        # parse_qs turns a literal '+' into a space when the link was not percent-encoded
        payload_b64 = payload_b64.replace(' ', '+')
        try:
            return base64.b64decode(payload_b64, validate=True).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.warning(f"Link payload is not valid base64 text: {e}")
            raise DecodeError("Link payload is not valid base64.") from e
