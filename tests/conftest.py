from unittest.mock import Mock

import pytest
import requests

from darajapay.app import create_app
from darajapay.config import DarajaSettings

TEST_CONFIG = {
    "TESTING": True,
    "DARAJA_ENV": "sandbox",
    "DARAJA_CONSUMER_KEY": "key",
    "DARAJA_CONSUMER_SECRET": "secret",
    "DARAJA_SHORTCODE": "174379",
    "DARAJA_PASSKEY": "passkey",
    "CALLBACK_URL": "https://example.com/api/daraja/callback",
    "DARAJA_TIMEOUT": None,
}


@pytest.fixture
def settings():
    return DarajaSettings.from_config(TEST_CONFIG)


@pytest.fixture
def app():
    return create_app(TEST_CONFIG)


@pytest.fixture
def client(app):
    return app.test_client()


def _make_response(status_code=200, body=None, text=""):
    """requests.Response stand-in; raise_for_status mirrors the real one."""
    resp = Mock(status_code=status_code, text=text)
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error", response=resp
        )
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def make_response():
    return _make_response
