from itsdangerous import Signer

# Matches the separator session.cookie splits on
SEPARATOR = "."


class CookieSigner:
    """
    Signs and verifies session cookie values as `<id>.<signature>`.

    Verification happens before the session id is resolved; a value that does
    not verify is not accepted as a session cookie at all.
    """

    def __init__(self, secret_key: str, salt: str = "session-cookie"):
        self._signer = Signer(secret_key, salt=salt, sep=SEPARATOR)

    def sign(self, session_id: str) -> str:
        return self._signer.sign(session_id).decode("utf-8")

    def verify(self, cookie_value: str) -> bool:
        return self._signer.validate(cookie_value)
