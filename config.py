import os
from urllib.parse import urlparse
from dotenv import load_dotenv
import logging

load_dotenv()

LOG_LEVEL_FROM_ENV = os.getenv("LOG_LEVEL", "INFO").upper()
numeric_level = getattr(logging, LOG_LEVEL_FROM_ENV, logging.INFO)

logging.basicConfig(
    level=numeric_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# --- Application Origin ---
# Link exports are built on this origin; it must be absolute.
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:8000")
MAGIC_LINK_PARAM = os.getenv("MAGIC_LINK_PARAM", "magic_login")

# --- Envelope Settings ---
ENVELOPE_KIND = "credential-envelope"
ENVELOPE_SCHEMA_VERSION = "1.0"
# Comma separated; only versions listed here are accepted on import
SUPPORTED_SCHEMA_VERSIONS = frozenset(
    v.strip() for v in os.getenv("SUPPORTED_SCHEMA_VERSIONS", ENVELOPE_SCHEMA_VERSION).split(",") if v.strip()
)
DISPLAY_NAME_KEY_PREFIX = 10 # Chars of the signing public key used when there is no alias

# --- Storage Settings ---
SECURE_STORAGE_FILE = os.getenv("SECURE_STORAGE_FILE", "identity_keypair.json")
LEGACY_STORE_FILE = os.getenv("LEGACY_STORE_FILE", "local_storage.json")
LEGACY_KEYPAIR_KEY = os.getenv("LEGACY_KEYPAIR_KEY", "shogun_keypair")
KNOWN_IDENTITIES_FILE = os.getenv("KNOWN_IDENTITIES_FILE", "known_identities.json")


# --- Basic Validation ---
_parsed_base = urlparse(APP_BASE_URL)
if not (_parsed_base.scheme and _parsed_base.netloc):
    logger.warning(f"APP_BASE_URL '{APP_BASE_URL}' is not an absolute URL. Link exports will not be scannable as links.")

if ENVELOPE_SCHEMA_VERSION not in SUPPORTED_SCHEMA_VERSIONS:
    logger.warning(f"SUPPORTED_SCHEMA_VERSIONS {sorted(SUPPORTED_SCHEMA_VERSIONS)} does not include the exported version {ENVELOPE_SCHEMA_VERSION}. Envelopes from this build will be rejected on import.")
