import pytest
import requests

from stubro import auth
from stubro.errors import AuthError


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, params=None, json=None, timeout=None):
        self.requests.append((url, params, json))
        if self.error is not None:
            raise self.error
        return self.response


def test_invite_code_is_case_insensitive():
    assert auth.check_invite_code(" garvbro ", required="GARVBRO")
    assert not auth.check_invite_code("nope", required="GARVBRO")


@pytest.mark.parametrize("name, password, confirm, invite, message", [
    ("Asha", "pw1", "pw1", "WRONG", "Invalid Invite Code. Access Denied."),
    ("Asha", "pw1", "pw2", "GARVBRO", "Passwords do not match"),
    ("  ", "pw1", "pw1", "GARVBRO", "Please enter your name"),
])
def test_sign_up_validation(name, password, confirm, invite, message):
    with pytest.raises(AuthError, match=message):
        auth.validate_sign_up(name, password, confirm, invite)


def test_sign_in_success():
    http = FakeHttp(FakeResponse(200, {"localId": "uid-1", "email": "a@b.com", "displayName": "Asha",
                                       "idToken": "tok"}))
    user = auth.sign_in("a@b.com", "secret", api_key="web-key", http=http)
    assert user == auth.AuthUser("uid-1", "a@b.com", "Asha", "tok")
    url, params, body = http.requests[0]
    assert url == auth.SIGN_IN_URL
    assert params == {"key": "web-key"}
    assert body["returnSecureToken"] is True


def test_sign_in_rejected():
    http = FakeHttp(FakeResponse(400, {"error": {"message": "INVALID_LOGIN_CREDENTIALS"}}))
    with pytest.raises(AuthError, match="Incorrect email or password."):
        auth.sign_in("a@b.com", "bad", api_key="web-key", http=http)


def test_sign_in_unknown_error_code():
    http = FakeHttp(FakeResponse(400, {"error": {"message": "TOO_MANY_ATTEMPTS_TRY_LATER : wait"}}))
    with pytest.raises(AuthError, match="Too many attempts"):
        auth.sign_in("a@b.com", "bad", api_key="web-key", http=http)


def test_sign_in_network_failure():
    http = FakeHttp(error=requests.ConnectionError("down"))
    with pytest.raises(AuthError, match="Could not reach"):
        auth.sign_in("a@b.com", "pw", api_key="web-key", http=http)


def test_sign_in_server_error_page():
    body = requests.exceptions.JSONDecodeError("Expecting value", "<html>502</html>", 0)
    http = FakeHttp(FakeResponse(502, body))
    with pytest.raises(AuthError, match="^Sign-in failed.$"):
        auth.sign_in("a@b.com", "pw", api_key="web-key", http=http)


def test_sign_in_needs_web_key(monkeypatch):
    monkeypatch.setattr(auth.config, "FIREBASE_WEB_API_KEY", "")
    with pytest.raises(AuthError, match="not configured"):
        auth.sign_in("a@b.com", "pw")


def test_sign_up_creates_user_then_signs_in(monkeypatch):
    created = {}
    monkeypatch.setattr(auth.firebase_auth, "create_user", lambda **kwargs: created.update(kwargs))
    http = FakeHttp(FakeResponse(200, {"localId": "uid-2", "email": "n@b.com", "idToken": "tok"}))

    user = auth.sign_up("Neel ", "n@b.com", "pw", "pw", "garvbro", api_key="web-key", http=http)

    assert created == {"email": "n@b.com", "password": "pw", "display_name": "Neel"}
    assert user.uid == "uid-2"


def test_sign_up_stops_at_invite_gate(monkeypatch):
    def fail(**kwargs):
        raise AssertionError("should not create")

    monkeypatch.setattr(auth.firebase_auth, "create_user", fail)
    with pytest.raises(AuthError):
        auth.sign_up("Neel", "n@b.com", "pw", "pw", "bad-code")
