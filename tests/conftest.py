"""Shared fixtures: a scripted stand-in for requests.Session and a clean config."""
import pytest
import requests

from sahha_probe.common.config import reset_config

CREDENTIALS = {
    "SAHHA_CLIENT_ID": "client-id",
    "SAHHA_CLIENT_SECRET": "client-secret",
    "SAHHA_APPLICATION_ID": "app-id",
    "SAHHA_APPLICATION_SECRET": "app-secret",
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeSession:
    """
    Records every request and answers from a {(method, path_suffix): response} map.

    A value may be an exception instance, which is raised instead.
    """

    def __init__(self, routes):
        self.routes = routes
        self.headers = {}
        self.calls = []
        self.closed = False

    def request(self, method, url, headers=None, json=None, params=None, timeout=None):
        self.calls.append({
            "method": method,
            "url": url,
            "headers": dict(headers or {}),
            "json": json,
            "params": params,
            "timeout": timeout,
        })
        # Longest suffix first so /register/appId wins over /register
        for (route_method, suffix), answer in sorted(
            self.routes.items(), key=lambda item: -len(item[0][1])
        ):
            if route_method == method and url.endswith(suffix):
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise requests.exceptions.ConnectionError(f"No route for {method} {url}")

    def close(self):
        self.closed = True

    def calls_to(self, suffix):
        return [c for c in self.calls if c["url"].endswith(suffix)]


@pytest.fixture
def sahha_env(monkeypatch, tmp_path):
    """Known credentials, default URLs, no config.yaml in the working dir."""
    monkeypatch.chdir(tmp_path)
    for name, value in CREDENTIALS.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("SAHHA_PRODUCTION_URL", raising=False)
    monkeypatch.delenv("SAHHA_SANDBOX_URL", raising=False)
    reset_config()
    yield
    reset_config()
