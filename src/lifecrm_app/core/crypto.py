"""AES-256-GCM field encryption and scrypt password hashing."""

from __future__ import annotations

import base64
import hashlib
import hmac
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

NONCE_SIZE = 12
KEY_SIZE = 32
SALT_SIZE = 16
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1


@dataclass
class CryptoService:
    """Encrypts and decrypts text using AES-256-GCM."""

    key: bytes

    @classmethod
    def from_base64_key(cls, key_b64: str) -> "CryptoService":
        key = base64.urlsafe_b64decode(key_b64.encode("utf-8"))
        if len(key) != KEY_SIZE:
            raise RuntimeError("Encryption key must decode to 32 bytes for AES-256.")
        return cls(key=key)

    @staticmethod
    def generate_base64_key() -> str:
        """Generate a base64-encoded 32-byte key."""
        return base64.urlsafe_b64encode(os.urandom(KEY_SIZE)).decode("utf-8")

    def encrypt_text(self, plain_text: str) -> bytes:
        """Encrypt UTF-8 text and return nonce+ciphertext bytes."""
        nonce = os.urandom(NONCE_SIZE)
        return nonce + AESGCM(self.key).encrypt(nonce, plain_text.encode("utf-8"), None)

    def decrypt_text(self, encrypted: bytes) -> str:
        """Decrypt nonce+ciphertext bytes into UTF-8 text."""
        nonce, cipher_text = encrypted[:NONCE_SIZE], encrypted[NONCE_SIZE:]
        return AESGCM(self.key).decrypt(nonce, cipher_text, None).decode("utf-8")

    def lookup_hash(self, value: str) -> str:
        """Keyed hash for equality lookups on encrypted columns."""
        return hmac.new(self.key, value.encode("utf-8"), hashlib.sha256).hexdigest()


def _scrypt(salt: bytes) -> Scrypt:
    return Scrypt(salt=salt, length=KEY_SIZE, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)


def hash_password(password: str) -> str:
    """Return ``salt$digest`` in urlsafe base64."""
    salt = os.urandom(SALT_SIZE)
    digest = _scrypt(salt).derive(password.encode("utf-8"))
    return (
        base64.urlsafe_b64encode(salt).decode("ascii")
        + "$"
        + base64.urlsafe_b64encode(digest).decode("ascii")
    )


def verify_password(password: str, stored: str) -> bool:
    salt_b64, _, digest_b64 = stored.partition("$")
    if not digest_b64:
        return False
    salt = base64.urlsafe_b64decode(salt_b64.encode("ascii"))
    digest = base64.urlsafe_b64decode(digest_b64.encode("ascii"))
    try:
        _scrypt(salt).verify(password.encode("utf-8"), digest)
    except InvalidKey:
        return False
    return True


def mask_phone(phone: str) -> str:
    """Mask a phone number except the last 3 digits."""
    if len(phone) <= 3:
        return "*" * len(phone)
    return "*" * (len(phone) - 3) + phone[-3:]
