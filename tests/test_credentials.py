"""Tests for htpasswd parsing and password checks."""

import base64
import hashlib

import bcrypt
import pytest

from service.credential_service import HtpasswdFile


@pytest.fixture
def htpasswd_path(tmp_path):
    bcrypt_hash = bcrypt.hashpw(b"bcrypt-pw", bcrypt.gensalt(rounds=4)).decode()
    sha = base64.b64encode(hashlib.sha1(b"sha-pw").digest()).decode()
    path = tmp_path / ".htpasswd"
    path.write_text(
        "\n".join(
            [
                "# comment line",
                f"carol:{bcrypt_hash}",
                f"dave:{{SHA}}{sha}",
                "erin:plain-pw",
                "frank:$apr1$abcdefgh$0123456789abcdefghijkl",
                "grace:rl0uE4kO3ORek",
                "malformed-line",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return path


def test_bcrypt(htpasswd_path):
    creds = HtpasswdFile(str(htpasswd_path))
    assert creds.validate("carol", "bcrypt-pw")
    assert not creds.validate("carol", "wrong")


def test_sha(htpasswd_path):
    creds = HtpasswdFile(str(htpasswd_path))
    assert creds.validate("dave", "sha-pw")
    assert not creds.validate("dave", "wrong")


def test_plaintext(htpasswd_path):
    creds = HtpasswdFile(str(htpasswd_path), allow_plaintext=True)
    assert creds.validate("erin", "plain-pw")
    assert not creds.validate("erin", "plain-pw ")


def test_plaintext_rejected_unless_allowed(htpasswd_path):
    creds = HtpasswdFile(str(htpasswd_path))
    assert not creds.validate("erin", "plain-pw")


def test_crypt_hash_is_not_its_own_password(htpasswd_path):
    assert not HtpasswdFile(str(htpasswd_path)).validate("grace", "rl0uE4kO3ORek")


def test_unsupported_hash_never_validates(htpasswd_path):
    creds = HtpasswdFile(str(htpasswd_path), allow_plaintext=True)
    assert not creds.validate("frank", "anything")
    assert not creds.validate("frank", "$apr1$abcdefgh$0123456789abcdefghijkl")


def test_unknown_and_malformed_users(htpasswd_path):
    creds = HtpasswdFile(str(htpasswd_path))
    assert not creds.validate("nobody", "")
    assert not creds.validate("malformed-line", "")


def test_reload_picks_up_changes(htpasswd_path):
    creds = HtpasswdFile(str(htpasswd_path), allow_plaintext=True)
    htpasswd_path.write_text("erin:new-pw\n", encoding="utf-8")
    creds.load()
    assert creds.validate("erin", "new-pw")
    assert not creds.validate("dave", "sha-pw")
