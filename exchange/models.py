# --- File: exchange/models.py ---
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Mapping, Optional
from enum import Enum

# Wire names of the four keypair roles, in canonical order
PAIR_WIRE_KEYS = ("pub", "priv", "epub", "epriv")


class Keypair(BaseModel):
    """
    A complete signing/encryption keypair.
    Instances only exist when all four fields are present and non-empty;
    use `Keypair.from_fields` to promote an untrusted SEA-shaped structure.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    signing_public: str = Field(..., alias="pub", min_length=1, description="Public signing key.")
    signing_private: str = Field(..., alias="priv", min_length=1, repr=False, description="Private signing key.")
    encryption_public: str = Field(..., alias="epub", min_length=1, description="Public encryption key.")
    encryption_private: str = Field(..., alias="epriv", min_length=1, repr=False, description="Private encryption key.")

    @classmethod
    def from_fields(cls, candidate: Any) -> Optional["Keypair"]:
        """Returns a Keypair if `candidate` carries all four fields as non-empty strings, else None."""
        if candidate is None:
            return None
        if isinstance(candidate, BaseModel):
            candidate = candidate.model_dump(by_alias=True)
        if not isinstance(candidate, Mapping):
            return None
        values = {key: candidate.get(key) for key in PAIR_WIRE_KEYS}
        if not all(isinstance(v, str) and v for v in values.values()):
            return None
        return cls(**values)

    def to_wire(self) -> "PairFields":
        return PairFields(**self.model_dump(by_alias=True))


class PairFields(BaseModel):
    """The `pair` object as it appears on the wire. Fields may be missing until validated."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    pub: Optional[str] = None
    priv: Optional[str] = Field(None, repr=False)
    epub: Optional[str] = None
    epriv: Optional[str] = Field(None, repr=False)


class CredentialEnvelope(BaseModel):
    """
    The portable unit carried by both transport encodings.
    Field order here is the canonical JSON key order.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    kind: str = Field(..., alias="type", description="Constant discriminator for this payload type.")
    schema_version: str = Field(..., alias="version", description="Envelope schema version.")
    keypair: Optional[PairFields] = Field(..., alias="pair", description="The exported keypair. `null` is left for the validator to reject.")
    display_name: str = Field("", alias="username", description="Account alias or truncated public key.")
    issued_at: int = Field(0, alias="exportedAt", description="Export time, milliseconds since epoch.")

    def to_json(self) -> str:
        """Canonical compact JSON text using wire key names."""
        return self.model_dump_json(by_alias=True)


class TransportFormat(str, Enum):
    RAW = "raw"
    LINK = "link"

    @classmethod
    def parse(cls, value: str) -> "TransportFormat":
        """Accepts `raw`, `link`, and `json` (older name for raw)."""
        normalized = (value or "").strip().lower()
        if normalized == "json":
            return cls.RAW
        return cls(normalized)


class TransportEncoding(BaseModel):
    """Either the raw envelope JSON or a link embedding it."""
    model_config = ConfigDict(frozen=True)

    format: TransportFormat
    value: str = Field(..., description="JSON text for raw, absolute URL for link.")

    @property
    def is_link(self) -> bool:
        return self.format == TransportFormat.LINK
