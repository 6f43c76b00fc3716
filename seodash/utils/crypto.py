"""
seodash/utils/crypto.py: encryption at rest for WordPress application passwords.
Key: CREDENTIAL_ENCRYPTION_KEY, a urlsafe base64 Fernet key
(Fernet.generate_key()). Without a key, passwords are stored as given,
which only development allows.
"""
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from seodash.config import get_settings


class CredentialError(ValueError):
    pass


@lru_cache(maxsize=4)
def _cipher_for(key: str) -> Fernet:
    return Fernet(key.encode())


def _cipher() -> Optional[Fernet]:
    key = get_settings().credential_encryption_key
    return _cipher_for(key) if key else None


def encrypt_credential(plain: str) -> str:
    cipher = _cipher()
    if cipher is not None:
        return cipher.encrypt(plain.encode()).decode()
    if get_settings().environment == "production":
        raise CredentialError("CREDENTIAL_ENCRYPTION_KEY must be set in production")
    return plain


def decrypt_credential(stored: str) -> str:
    cipher = _cipher()
    if cipher is None:
        return stored
    try:
        return cipher.decrypt(stored.encode()).decode()
    except InvalidToken:
        raise CredentialError("Stored credential cannot be decrypted with the configured key")
