# mypy: ignore-errors
# tests/test_crypto.py
"""Tests for key handling and Ed25519 signatures."""

from __future__ import annotations

import pytest
from nacl.signing import SigningKey

from shiftlink.core.security import verify_signature
from shiftlink.services.crypto import CryptoService, decode_b64, encode_b64
from shiftlink.utils.hash import key_fingerprint


def test_signature_from_cryptography_verifies_with_nacl() -> None:
    private_key, public_key = CryptoService.generate_key_pair()
    message = b'{"employeeId":"e1"}'

    signature = CryptoService.sign_message(private_key, message)

    assert len(private_key) == 32
    assert CryptoService.public_key_for(private_key) == public_key
    assert verify_signature(public_key, message, signature)


def test_flipping_one_bit_breaks_the_signature() -> None:
    private_key, public_key = CryptoService.generate_key_pair()
    message = b'{"payload":{"registerId":"r1"}}'
    signature = CryptoService.sign_message(private_key, message)

    tampered = bytearray(message)
    tampered[-3] ^= 0x01

    assert not verify_signature(public_key, bytes(tampered), signature)


def test_signature_under_another_key_is_rejected() -> None:
    private_key, _ = CryptoService.generate_key_pair()
    _, other_public_key = CryptoService.generate_key_pair()
    signature = CryptoService.sign_message(private_key, b"hello")

    assert not verify_signature(other_public_key, b"hello", signature)


def test_garbage_key_does_not_raise() -> None:
    assert not verify_signature(b"short", b"hello", b"\x00" * 64)


def test_public_key_accepts_base64_and_hex() -> None:
    public_key = SigningKey.generate().verify_key.encode()

    assert CryptoService.validate_and_decode_pubkey(encode_b64(public_key)) == public_key
    assert CryptoService.validate_and_decode_pubkey(public_key.hex()) == public_key


@pytest.mark.parametrize("value", ["", "not-a-key", encode_b64(b"\x01" * 31)])
def test_malformed_public_keys_are_rejected(value: str) -> None:
    with pytest.raises(ValueError):
        CryptoService.validate_and_decode_pubkey(value)


def test_signature_length_is_checked() -> None:
    with pytest.raises(ValueError):
        CryptoService.decode_signature(encode_b64(b"\x00" * 63))


def test_base64_round_trip_without_padding() -> None:
    encoded = encode_b64(b"\xfb\xff")

    assert "=" not in encoded
    assert decode_b64(encoded) == b"\xfb\xff"


def test_nonce_is_128_bit_hex() -> None:
    nonce = CryptoService.generate_nonce()

    assert len(nonce) == 32
    int(nonce, 16)
    assert nonce != CryptoService.generate_nonce()


def test_fingerprint_is_stable_and_short() -> None:
    public_key = b"\x07" * 32

    assert key_fingerprint(public_key) == CryptoService.fingerprint(public_key)
    assert len(key_fingerprint(public_key)) == 16
