from __future__ import annotations

import pytest

from src.backend.certify.api.dependencies import get_mailer
from src.backend.certify.errors import EmailDeliveryError
from src.backend.certify.integrations.sendgrid_client import SENDGRID_MAIL_URL, SendGridClient


class _FakeResp:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


def _client() -> SendGridClient:
    return SendGridClient(api_key="sg-key", from_email="notify@co.com", from_name="Notify")


def test_send_posts_v3_payload(monkeypatch) -> None:
    seen = {}

    def fake_request(method, url, headers=None, json=None, timeout=None):
        seen.update(method=method, url=url, headers=headers, json=json)
        return _FakeResp(202)

    monkeypatch.setattr("requests.request", fake_request)
    _client().send(to_email="jane@co.com", to_name="Jane", subject="Hi", text="t", html="<p>h</p>")

    assert seen["method"] == "POST"
    assert seen["url"] == SENDGRID_MAIL_URL
    assert seen["headers"]["Authorization"] == "Bearer sg-key"
    assert seen["json"]["personalizations"] == [{"to": [{"email": "jane@co.com", "name": "Jane"}], "subject": "Hi"}]
    assert seen["json"]["from"] == {"email": "notify@co.com", "name": "Notify"}
    assert [c["type"] for c in seen["json"]["content"]] == ["text/plain", "text/html"]


def test_send_raises_on_error_status(monkeypatch) -> None:
    monkeypatch.setattr("requests.request", lambda method, url, **kwargs: _FakeResp(401, "bad key"))
    with pytest.raises(EmailDeliveryError, match="401"):
        _client().send(to_email="jane@co.com", to_name=None, subject="Hi", text="t", html="h")


def test_get_mailer_builds_client_from_env(monkeypatch) -> None:
    monkeypatch.setattr("src.backend.certify.integrations.sendgrid_client.load_dotenv", lambda **_: None)
    monkeypatch.delenv("SENDGRID_API_KEY", raising=False)
    assert get_mailer() is None

    monkeypatch.setenv("SENDGRID_API_KEY", "sg-env")
    monkeypatch.setenv("REMINDER_FROM_EMAIL", "ops@co.com")
    monkeypatch.setenv("REMINDER_FROM_NAME", "Ops")
    seen = {}

    def fake_request(method, url, headers=None, json=None, timeout=None):
        seen.update(headers=headers, json=json)
        return _FakeResp(202)

    monkeypatch.setattr("requests.request", fake_request)
    mailer = get_mailer()
    assert isinstance(mailer, SendGridClient)
    mailer.send(to_email="jane@co.com", to_name=None, subject="Hi", text="t", html="h")
    assert seen["headers"]["Authorization"] == "Bearer sg-env"
    assert seen["json"]["from"] == {"email": "ops@co.com", "name": "Ops"}
