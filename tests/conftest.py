import hashlib
import hmac
import json

import pytest

from iyzico_facade import IyzicoSettings

SECRET = "mySecret"


def hmac_hex(message: str, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


class FakeResponse:
    """Stands in for the http.client response the SDK returns."""

    def __init__(self, body):
        self._raw = json.dumps(body).encode("utf-8")

    def read(self):
        return self._raw


class FakeResource:
    def __init__(self, sdk, name):
        self.sdk = sdk
        self.name = name

    def _respond(self, method, request, options):
        self.sdk.calls.append((self.name, method, request, options))
        return FakeResponse(self.sdk.responses[self.name])

    def create(self, request, options):
        return self._respond("create", request, options)

    def retrieve(self, request, options):
        return self._respond("retrieve", request, options)


class FakeSDK:
    """Minimal iyzipay module replacement keyed by resource name."""

    def __init__(self):
        self.responses = {}
        self.calls = []

    def __getattr__(self, name):
        if name[:1].isupper():
            return lambda: FakeResource(self, name)
        raise AttributeError(name)


@pytest.fixture
def secret():
    return SECRET


@pytest.fixture
def settings():
    return IyzicoSettings(
        api_key="sandbox-api-key",
        secret_key=SECRET,
        base_url="https://sandbox-api.iyzipay.com/",
        locale="tr",
        conversation_id="conv-1",
    )


@pytest.fixture
def fake_sdk():
    return FakeSDK()
