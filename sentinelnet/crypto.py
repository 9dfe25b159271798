"""Symmetric encryption, padding, hashing and key helpers."""

from __future__ import annotations

import hashlib
import os
import secrets
import string

from cryptography.hazmat.primitives import padding as _block_padding
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

BLOCK_SIZE = 16
KEY_SIZE = 32

_HEX_DIGITS = frozenset(string.hexdigits)


class CryptoError(Exception):
    """Raised when an encryption operation cannot be carried out."""


class DecryptionError(CryptoError):
    """Raised when a ciphertext cannot be decrypted or its padding is invalid."""


def pad_data(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """Append PKCS#7-style padding; an aligned input gains a whole block."""
    if not 1 <= block_size <= 255:
        raise ValueError(f"block size must be between 1 and 255, got {block_size}")
    count = block_size - len(data) % block_size
    return bytes(data) + bytes([count]) * count


def unpad_data(data: bytes) -> bytes:
    """Strip padding added by :func:`pad_data` with the default block size."""
    data = bytes(data)
    if not data:
        return b""
    count = data[-1]
    if count == 0 or count > BLOCK_SIZE or count > len(data):
        raise DecryptionError("invalid padding length")
    if data[-count:] != bytes([count]) * count:
        raise DecryptionError("invalid padding bytes")
    return data[:-count]


def _cipher_key(key: bytes) -> bytes:
    if len(key) < KEY_SIZE:
        raise CryptoError(f"key must be at least {KEY_SIZE} bytes, got {len(key)}")
    return bytes(key[:KEY_SIZE])


def aes_encrypt(data: bytes, key: bytes) -> bytes:
    """Encrypt with AES-256-CBC under a random IV; returns IV followed by ciphertext."""
    cipher_key = _cipher_key(key)
    iv = os.urandom(BLOCK_SIZE)
    padder = _block_padding.PKCS7(BLOCK_SIZE * 8).padder()
    block = padder.update(pad_data(data)) + padder.finalize()
    encryptor = Cipher(algorithms.AES(cipher_key), modes.CBC(iv)).encryptor()
    return iv + encryptor.update(block) + encryptor.finalize()


def aes_decrypt(data: bytes, key: bytes) -> bytes:
    """Decrypt the output of :func:`aes_encrypt`."""
    cipher_key = _cipher_key(key)
    data = bytes(data)
    if len(data) < BLOCK_SIZE:
        raise DecryptionError("ciphertext shorter than one block")
    iv, body = data[:BLOCK_SIZE], data[BLOCK_SIZE:]
    try:
        decryptor = Cipher(algorithms.AES(cipher_key), modes.CBC(iv)).decryptor()
        plain = decryptor.update(body) + decryptor.finalize()
        unpadder = _block_padding.PKCS7(BLOCK_SIZE * 8).unpadder()
        plain = unpadder.update(plain) + unpadder.finalize()
    except ValueError as exc:
        raise DecryptionError("ciphertext could not be decrypted") from exc
    return unpad_data(plain)


def hash_data(data: bytes) -> str:
    """Return the lowercase hexadecimal SHA-256 digest of ``data``."""
    return hashlib.sha256(bytes(data)).hexdigest()


def hex_to_bytes(text: str) -> bytes:
    """Decode a hex string; odd-length or malformed input yields empty bytes."""
    if len(text) % 2 != 0 or not set(text) <= _HEX_DIGITS:
        return b""
    return bytes.fromhex(text)


def generate_random_key(size: int = KEY_SIZE) -> bytes:
    """Return ``size`` cryptographically random bytes."""
    if size < 0:
        raise ValueError("key size cannot be negative")
    return secrets.token_bytes(size)


def public_key_to_pem(key) -> str:
    """Serialise an RSA key's public half as a PKCS#1 PEM string."""
    if key is None:
        return ""
    if isinstance(key, rsa.RSAPrivateKey):
        key = key.public_key()
    pem = key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.PKCS1,
    )
    return pem.decode("ascii")


def looks_like_pem(text: str) -> bool:
    """Tell whether ``text`` contains a PEM armour header."""
    return "-----BEGIN" in text