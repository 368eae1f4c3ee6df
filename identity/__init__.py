from .storage import SecureKeyStorage, LegacyKeyValueStore
from .session import Session, Authenticator, SessionManager

__all__ = ["SecureKeyStorage", "LegacyKeyValueStore", "Session", "Authenticator", "SessionManager"]
