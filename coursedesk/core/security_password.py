# coursedesk/core/security_password.py
"""
Hash e verificação de senhas.

Formato principal: ``$pbkdf2$<iterações>$<salt hex>$<hash hex>`` (PBKDF2-HMAC-SHA256,
salt de 16 bytes, chave derivada de 32 bytes). Contas antigas ainda podem ter hash
bcrypt (``$2a$``/``$2b$``/``$2y$``); esses são verificados via passlib quando o
backend bcrypt está disponível e, caso contrário, tratados como "verificação não
suportada" (retorna False, nunca True).
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import Optional, Tuple

from passlib.context import CryptContext
from passlib.exc import MissingBackendError

logger = logging.getLogger(__name__)

PBKDF2_PREFIX = "$pbkdf2$"
PBKDF2_ITERATIONS = 100_000
SALT_LENGTH = 16
KEY_LENGTH = 32

SCHEME_PBKDF2 = "pbkdf2"
SCHEME_BCRYPT = "bcrypt"

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

legacy_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def identify_scheme(stored_hash: str) -> Optional[str]:
    if not isinstance(stored_hash, str):
        return None
    if stored_hash.startswith(PBKDF2_PREFIX):
        return SCHEME_PBKDF2
    if stored_hash.startswith(_BCRYPT_PREFIXES):
        return SCHEME_BCRYPT
    return None


def _derive(plain: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", plain.encode("utf-8"), salt, iterations, dklen=KEY_LENGTH)


def hash_password(plain: str, *, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = secrets.token_bytes(SALT_LENGTH)
    derived = _derive(plain, salt, iterations)
    return f"{PBKDF2_PREFIX}{iterations}${salt.hex()}${derived.hex()}"


def _parse_pbkdf2(stored_hash: str) -> Optional[Tuple[int, bytes, bytes]]:
    # "", "pbkdf2", iterações, salt, hash
    parts = stored_hash.split("$")
    if len(parts) != 5:
        return None
    try:
        iterations = int(parts[2])
        salt = bytes.fromhex(parts[3])
        expected = bytes.fromhex(parts[4])
    except ValueError:
        return None
    if iterations <= 0 or not salt or len(expected) != KEY_LENGTH:
        return None
    return iterations, salt, expected


def _verify_pbkdf2(plain: str, stored_hash: str) -> bool:
    parsed = _parse_pbkdf2(stored_hash)
    if parsed is None:
        logger.warning("Malformed pbkdf2 password hash")
        return False
    iterations, salt, expected = parsed
    return hmac.compare_digest(_derive(plain, salt, iterations), expected)


def _verify_bcrypt(plain: str, stored_hash: str) -> bool:
    try:
        return legacy_context.verify(plain, stored_hash)
    except MissingBackendError:
        logger.warning("bcrypt backend unavailable; legacy password hash cannot be verified")
        return False
    except ValueError:
        logger.warning("Malformed legacy password hash")
        return False


def verify_password(plain: str, stored_hash: str) -> bool:
    if not isinstance(plain, str) or not plain:
        return False
    scheme = identify_scheme(stored_hash)
    if scheme == SCHEME_PBKDF2:
        return _verify_pbkdf2(plain, stored_hash)
    if scheme == SCHEME_BCRYPT:
        return _verify_bcrypt(plain, stored_hash)
    logger.warning("Unknown password hash format")
    return False


def needs_update(stored_hash: str) -> bool:
    scheme = identify_scheme(stored_hash)
    if scheme != SCHEME_PBKDF2:
        return True
    parsed = _parse_pbkdf2(stored_hash)
    return parsed is None or parsed[0] < PBKDF2_ITERATIONS


def verify_and_maybe_upgrade(plain: str, stored_hash: str) -> Tuple[bool, str | None]:
    ok = verify_password(plain, stored_hash)
    if not ok:
        return False, None
    if needs_update(stored_hash):
        return True, hash_password(plain)
    return True, None


# usado quando o e-mail não existe: mantém o custo da derivação constante
_DUMMY_HASH = hash_password(secrets.token_urlsafe(16))


def burn_verification(plain: str) -> None:
    _verify_pbkdf2(plain or "", _DUMMY_HASH)
