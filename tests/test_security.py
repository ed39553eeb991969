"""Tests for token signing and password hashing."""

import json

import pytest

from food_hero_api.app.core.security import (
    _b64_url_encode,
    _sign,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_token_round_trip() -> None:
    token = create_access_token({"sub": "school@example.com"}, secret="s3cret", expires_delta=60)
    payload = decode_access_token(token, "s3cret")
    assert payload["sub"] == "school@example.com"


def test_wrong_secret_rejected() -> None:
    token = create_access_token({"sub": "school@example.com"}, secret="s3cret", expires_delta=60)
    assert decode_access_token(token, "other") is None


def test_expired_token_rejected() -> None:
    token = create_access_token({"sub": "school@example.com"}, secret="s3cret", expires_delta=-10)
    assert decode_access_token(token, "s3cret") is None


def test_tampered_payload_rejected() -> None:
    token = create_access_token({"sub": "school@example.com"}, secret="s3cret", expires_delta=60)
    forged = create_access_token({"sub": "farmer@example.com"}, secret="s3cret", expires_delta=60)
    header, _, signature = token.split(".")
    assert decode_access_token(f"{header}.{forged.split('.')[1]}.{signature}", "s3cret") is None


def test_password_hashing() -> None:
    hashed = hash_password("secret123")
    assert "$" in hashed
    assert hashed != hash_password("secret123")
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", "garbage")


def sign_payload(payload: dict, secret: str = "s3cret") -> str:
    header = _b64_url_encode(json.dumps({"alg": "HS256", "typ": "JWT"}).encode("utf-8"))
    body = _b64_url_encode(json.dumps(payload).encode("utf-8"))
    signature = _b64_url_encode(_sign(f"{header}.{body}".encode("utf-8"), secret))
    return f"{header}.{body}.{signature}"


@pytest.mark.parametrize(
    "payload",
    [
        {"sub": "school@example.com", "exp": "tomorrow"},
        {"sub": "school@example.com", "exp": [1]},
        {"sub": "school@example.com"},
        {"sub": 42, "exp": 4102444800},
        {"sub": ["school@example.com"], "exp": 4102444800},
    ],
)
def test_signed_token_with_malformed_claims_rejected(payload) -> None:
    assert decode_access_token(sign_payload(payload), "s3cret") is None


def test_signed_token_with_malformed_claims_is_unauthorized(client, settings) -> None:
    token = sign_payload({"sub": 42, "exp": "soon"}, settings.secret_key)
    response = client.get("/api/v1/waste/posts", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
