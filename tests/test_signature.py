"""Tests for HMAC signing and verification."""

import pytest

from hookrelay.signature import sign, signature_header, verify


def test_sign_sha1_known_vector() -> None:
    # RFC 2202, test case 2
    assert sign("Jefe", "what do ya want for nothing?") == (
        "sha1=effcdf6ae5eb2fa2d27416d5f184df9c259a7c79"
    )


def test_sign_sha256_known_vector() -> None:
    # RFC 4231, test case 2
    assert sign("Jefe", b"what do ya want for nothing?", "sha256") == (
        "sha256=5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"
    )


def test_sign_accepts_str_and_bytes() -> None:
    assert sign("bogus", '{"foo": "bar"}') == sign("bogus", b'{"foo": "bar"}')
    assert sign("bogus", "héllo") == sign("bogus", "héllo".encode("utf-8"))


@pytest.mark.parametrize("body", [b"", b"{}", b'{"a":1}', "unicode ✓".encode("utf-8")])
def test_verify_accepts_own_signature(body: bytes) -> None:
    assert verify("bogus", sign("bogus", body), body)


def test_verify_rejects_other_body() -> None:
    assert not verify("bogus", sign("bogus", '{"foo":"bar"}'), "nope")
    assert not verify("bogus", sign("bogus", "nope"), '{"foo":"bar"}')


def test_verify_rejects_other_secret() -> None:
    assert not verify("bogus", sign("other", "data"), "data")


def test_verify_length_mismatch_is_not_equal() -> None:
    signature = sign("bogus", "data")
    assert not verify("bogus", signature[:-1], "data")
    assert not verify("bogus", signature + "0", "data")
    assert not verify("bogus", "", "data")


def test_verify_non_ascii_signature_is_not_equal() -> None:
    assert not verify("bogus", "sha1=ü", "data")


def test_verify_algorithm_must_match() -> None:
    assert not verify("bogus", sign("bogus", "data", "sha256"), "data", "sha1")
    assert verify("bogus", sign("bogus", "data", "sha256"), "data", "sha256")


def test_signature_header_names() -> None:
    assert signature_header("sha1") == "X-Hub-Signature"
    assert signature_header("sha256") == "X-Hub-Signature-256"


def test_unsupported_algorithm() -> None:
    with pytest.raises(ValueError, match="Unsupported signature algorithm"):
        sign("bogus", "data", "md5")
