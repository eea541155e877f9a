"""Password encryption of packaged project data.

PBKDF2-HMAC-SHA256 derives a 256-bit key from the password and a random salt;
AES-GCM encrypts with a random nonce. The payload is
``base64(salt || nonce || ciphertext)``.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from blockforge.errors import WrongPasswordError

PBKDF2_ITERATIONS = 100_000
SALT_LEN = 16
NONCE_LEN = 12
KEY_LEN = 32

ENCRYPTION_INFO = {
    "algorithm": "AES-GCM-256",
    "kdf": "PBKDF2-SHA256",
    "iterations": PBKDF2_ITERATIONS,
}


def derive_key(password: str, salt: bytes, iterations: int = PBKDF2_ITERATIONS) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LEN,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def encrypt_text(plaintext: str, password: str) -> str:
    salt = os.urandom(SALT_LEN)
    nonce = os.urandom(NONCE_LEN)
    key = derive_key(password, salt)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(salt + nonce + ciphertext).decode("ascii")


def decrypt_text(payload: str, password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Decrypt a payload made by :func:`encrypt_text`.

    Raises :class:`WrongPasswordError` for a bad password or tampered data;
    the two cannot be told apart.
    """
    try:
        data = base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise WrongPasswordError("Encrypted data is corrupted.") from exc
    if len(data) < SALT_LEN + NONCE_LEN + 1:
        raise WrongPasswordError("Encrypted data is corrupted.")

    salt = data[:SALT_LEN]
    nonce = data[SALT_LEN:SALT_LEN + NONCE_LEN]
    ciphertext = data[SALT_LEN + NONCE_LEN:]
    key = derive_key(password, salt, iterations)
    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext, None)
    except InvalidTag as exc:
        raise WrongPasswordError("Incorrect password or corrupted data.") from exc
    return plaintext.decode("utf-8")
