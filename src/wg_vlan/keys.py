# src/wg_vlan/keys.py
from __future__ import annotations

import base64
import binascii
import secrets
from typing import Union

from cryptography.hazmat.primitives.asymmetric import x25519

from .exceptions import EmptyKeyError, InvalidKeyEncodingError, InvalidKeyMaterialError

KEY_SIZE = 32

Key = Union[x25519.X25519PrivateKey, x25519.X25519PublicKey, bytes]


# ---------- Génération ----------

def _clamp(raw: bytes) -> bytes:
    b = bytearray(raw)
    b[0] &= 248
    b[31] &= 127
    b[31] |= 64
    return bytes(b)


def generate_private_key() -> x25519.X25519PrivateKey:
    """
    Nouvelle clé privée Curve25519, bornée comme le fait `wg genkey`.
    """
    return x25519.X25519PrivateKey.from_private_bytes(_clamp(secrets.token_bytes(KEY_SIZE)))


def generate_keypair() -> tuple[str, str]:
    """
    Retourne (private_key, public_key) en base64.
    """
    priv = generate_private_key()
    return encode_key(priv), encode_key(derive_public_key(priv))


def generate_preshared_key() -> str:
    return encode_key(secrets.token_bytes(KEY_SIZE))


# ---------- Décodage ----------

def _decode(b64key: str, kind: str) -> bytes:
    if not b64key:
        raise EmptyKeyError(f"cannot parse {kind} key: no key specified")
    try:
        raw = base64.b64decode(b64key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidKeyEncodingError(f"{kind} key is not valid base64: {e}") from e
    if len(raw) != KEY_SIZE:
        raise InvalidKeyMaterialError(f"{kind} key must be {KEY_SIZE} bytes, got {len(raw)}")
    return raw


def decode_private_key(b64key: str) -> x25519.X25519PrivateKey:
    raw = _decode(b64key, "private")
    try:
        return x25519.X25519PrivateKey.from_private_bytes(raw)
    except ValueError as e:
        raise InvalidKeyMaterialError(f"invalid private key: {e}") from e


def decode_public_key(b64key: str) -> x25519.X25519PublicKey:
    raw = _decode(b64key, "public")
    try:
        return x25519.X25519PublicKey.from_public_bytes(raw)
    except ValueError as e:
        raise InvalidKeyMaterialError(f"invalid public key: {e}") from e


def decode_preshared_key(b64key: str) -> bytes:
    return _decode(b64key, "preshared")


# ---------- Dérivation / encodage ----------

def derive_public_key(private_key: x25519.X25519PrivateKey) -> x25519.X25519PublicKey:
    return private_key.public_key()


def private_to_public(private_key: str) -> str:
    return encode_key(derive_public_key(decode_private_key(private_key)))


def encode_key(key: Key) -> str:
    if isinstance(key, x25519.X25519PrivateKey):
        raw = key.private_bytes_raw()
    elif isinstance(key, x25519.X25519PublicKey):
        raw = key.public_bytes_raw()
    else:
        raw = bytes(key)
    return base64.b64encode(raw).decode("ascii")
