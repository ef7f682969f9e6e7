"""
Session Codec

Encrypts session payloads into opaque cookie values with AES-256-GCM.

Blob Format: base64(nonce || tag || ciphertext)
where the key = scrypt(secret, static salt) so every process holding the
same secret derives the same key.
"""

import base64
import binascii
import json
import os
from dataclasses import asdict, dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from core.errors import ConfigurationError
from core.logger import get_logger

logger = get_logger(__name__)

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16

# Static salt: the derived key must be reproducible without being stored
_KEY_SALT = b"proposal-gate-session"


@dataclass(frozen=True)
class Session:
    """An authenticated visitor's access grant to one resource"""

    resource_id: str
    authenticated: bool
    issued_at: float


def derive_key(secret: str) -> bytes:
    """Derive the 32-byte session key from the server secret."""
    kdf = Scrypt(salt=_KEY_SALT, length=KEY_SIZE, n=2**14, r=8, p=1)
    return kdf.derive(secret.encode("utf-8"))


class SessionCodec:
    def __init__(self, secret_key: str):
        """
        Initialize Session Codec

        Args:
            secret_key: Server-side secret the encryption key is derived from

        Raises:
            ConfigurationError: If the secret is empty
        """
        if not secret_key:
            raise ConfigurationError(context={"setting": "SESSION_SECRET"})
        self._aesgcm = AESGCM(derive_key(secret_key))

    def encrypt(self, session: Session) -> str:
        """
        Encrypt a session into a cookie-safe string

        Args:
            session: Session to seal

        Returns:
            Base64-encoded nonce || tag || ciphertext
        """
        nonce = os.urandom(NONCE_SIZE)
        plaintext = json.dumps(asdict(session), separators=(",", ":")).encode("utf-8")

        # AESGCM appends the tag to the ciphertext
        sealed = self._aesgcm.encrypt(nonce, plaintext, None)
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]

        return base64.b64encode(nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, blob: str) -> Session | None:
        """
        Decrypt a cookie value back into a session

        Args:
            blob: Value produced by encrypt()

        Returns:
            The session, or None if the blob is malformed, tampered with or
            not a session payload
        """
        try:
            data = base64.b64decode(blob.encode("ascii"), validate=True)
            if len(data) <= NONCE_SIZE + TAG_SIZE:
                return None

            nonce = data[:NONCE_SIZE]
            tag = data[NONCE_SIZE : NONCE_SIZE + TAG_SIZE]
            ciphertext = data[NONCE_SIZE + TAG_SIZE :]

            plaintext = self._aesgcm.decrypt(nonce, ciphertext + tag, None)
            payload = json.loads(plaintext)

            return Session(
                resource_id=str(payload["resource_id"]),
                authenticated=payload["authenticated"] is True,
                issued_at=float(payload["issued_at"]),
            )

        except (InvalidTag, ValueError, binascii.Error, KeyError, TypeError) as e:
            logger.debug(f"Failed to decrypt session: {type(e).__name__}")
            return None
