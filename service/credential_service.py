# service/credential_service.py
import base64
import hashlib
import hmac
import logging
from typing import Dict
import bcrypt

logger = logging.getLogger(__name__)

_BCRYPT_PREFIXES = ("$2y$", "$2b$", "$2a$")
_SHA_PREFIX = "{SHA}"


class HtpasswdFile:
    """
    Username/password pairs read from an Apache htpasswd file.

    Supported hash formats: bcrypt and {SHA}, plus plain text when
    allow_plaintext is set. Anything else (apr1, DES crypt) never validates.
    """

    def __init__(self, path: str, allow_plaintext: bool = False) -> None:
        self.path = path
        self.allow_plaintext = allow_plaintext
        self._users: Dict[str, str] = {}
        self.load()

    def load(self) -> None:
        users: Dict[str, str] = {}
        with open(self.path, "r", encoding="utf-8") as fh:
            for lineno, raw in enumerate(fh, start=1):
                line = raw.strip()
                if not line or line.startswith("#"):
                    continue
                user, sep, hashed = line.partition(":")
                if not sep or not user:
                    logger.warning("htpasswd.malformed line=%d", lineno)
                    continue
                users[user] = hashed
        self._users = users
        logger.info("htpasswd.loaded users=%d", len(users))

    def validate(self, username: str, password: str) -> bool:
        hashed = self._users.get(username)
        if hashed is None:
            return False
        pw = password.encode("utf-8")

        if hashed.startswith(_BCRYPT_PREFIXES):
            try:
                return bcrypt.checkpw(pw, hashed.encode("utf-8"))
            except ValueError:
                logger.warning("htpasswd.bad_hash user=%s", username)
                return False

        if hashed.startswith(_SHA_PREFIX):
            digest = base64.b64encode(hashlib.sha1(pw).digest()).decode("ascii")
            return hmac.compare_digest(digest, hashed[len(_SHA_PREFIX):])

        if hashed.startswith("$") or not self.allow_plaintext:
            # apr1, crypt and friends; a bare entry is only plain text when allowed.
            logger.warning("htpasswd.unsupported_hash user=%s", username)
            return False

        return hmac.compare_digest(pw, hashed.encode("utf-8"))
