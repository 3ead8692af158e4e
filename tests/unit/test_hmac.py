import hashlib
import hmac
import json

from pushscribe.common import (
    compute_hmac,
    compute_hmac_sha256,
    verify_github_signature,
    verify_hmac_signature,
)

SECRET = "test123"
BODY = json.dumps({"ref": "refs/heads/main", "commits": []}).encode("utf-8")


def _sign(algorithm: str) -> str:
    digest = hmac.new(SECRET.encode("utf-8"), BODY, getattr(hashlib, algorithm)).hexdigest()
    return f"{algorithm}={digest}"


def test_compute_hmac_matches_stdlib():
    assert compute_hmac_sha256(BODY, SECRET) == _sign("sha256").split("=", 1)[1]
    assert compute_hmac(BODY, SECRET, "sha1") == _sign("sha1").split("=", 1)[1]


def test_verify_hmac_signature():
    assert verify_hmac_signature(BODY, _sign("sha256"), SECRET)
    assert verify_hmac_signature(BODY, _sign("sha1"), SECRET)
    assert not verify_hmac_signature(BODY, _sign("sha256"), "other-secret")
    assert not verify_hmac_signature(BODY, "md5=abc", SECRET)
    assert not verify_hmac_signature(BODY, "", SECRET)
    assert not verify_hmac_signature(BODY, "nodelimiter", SECRET)


def test_github_signature_prefers_sha256():
    assert verify_github_signature(BODY, SECRET, signature_256=_sign("sha256"))


def test_github_signature_falls_back_to_sha1():
    assert verify_github_signature(BODY, SECRET, signature_256="sha256=deadbeef", signature_1=_sign("sha1"))
    assert verify_github_signature(BODY, SECRET, signature_1=_sign("sha1"))


def test_github_signature_rejects_tampered_body():
    assert not verify_github_signature(BODY + b" ", SECRET, _sign("sha256"), _sign("sha1"))
    assert not verify_github_signature(BODY, SECRET)
