from dotenv import load_dotenv
load_dotenv()  # ensures RUN_INTEGRATION / IT_* env are visible to pytest

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

import pytest
import requests
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

import actions

AMBIENT_PREFIXES = ("INPUT_", "STATE_")
AMBIENT_NAMES = (
    "GITHUB_API_URL", "GITHUB_REPOSITORY", "GITHUB_OUTPUT", "GITHUB_STATE",
    "HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "NO_PROXY",
    "http_proxy", "https_proxy", "all_proxy", "no_proxy",
    "REQUESTS_CA_BUNDLE", "SSL_CERT_FILE", "HTTP_TIMEOUT_MS", "RUNNER_DEBUG",
)


class FakeResponse:
    def __init__(self, status_code=200, json_obj=None, text="", headers=None, url=""):
        self.status_code = status_code
        self._json = json_obj
        self.text = text
        self.reason = "OK" if status_code < 400 else "Error"
        self.headers = headers or {"content-type": "application/json"}
        self.url = url

    def json(self):
        if self._json is None:
            raise ValueError("No JSON")
        return self._json


@dataclass
class Call:
    method: str
    url: str
    path: str
    headers: Dict[str, str]
    kwargs: Dict[str, Any]


class FakeGitHub:
    """Route table standing in for the GitHub API; unknown routes answer 404."""

    def __init__(self):
        self.routes: Dict[tuple, Any] = {}
        self.calls: List[Call] = []

    def add(self, method: str, path: str, status: int = 200, json_obj=None, exc: Optional[Exception] = None):
        self.routes[(method, path)] = (status, json_obj, exc)

    def handle(self, session, method, url, **kwargs):
        path = urlsplit(url).path
        self.calls.append(Call(method, url, path, dict(session.headers), kwargs))
        status, json_obj, exc = self.routes.get((method, path), (404, {"message": "Not Found"}, None))
        if exc is not None:
            raise exc
        return FakeResponse(status, json_obj, url=url)

    @property
    def paths(self) -> List[str]:
        return [f"{c.method} {c.path}" for c in self.calls]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith(AMBIENT_PREFIXES) or key in AMBIENT_NAMES:
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(actions, "_secrets", set())


@pytest.fixture
def fake_github(monkeypatch):
    fake = FakeGitHub()
    monkeypatch.setattr(
        requests.Session, "request",
        lambda self, method, url, **kwargs: fake.handle(self, method, url, **kwargs),
    )
    return fake


@pytest.fixture(scope="session")
def rsa_keys():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture
def private_pem(rsa_keys):
    return rsa_keys[0]


def read_file_commands(path) -> Dict[str, str]:
    """Parse `name<<delimiter` blocks written to GITHUB_OUTPUT / GITHUB_STATE."""
    if not os.path.exists(path):
        return {}
    values: Dict[str, str] = {}
    lines = open(path, encoding="utf-8").read().split("\n")
    i = 0
    while i < len(lines):
        if "<<" not in lines[i]:
            i += 1
            continue
        name, delimiter = lines[i].split("<<", 1)
        end = lines.index(delimiter, i + 1)
        values[name] = "\n".join(lines[i + 1:end])
        i = end + 1
    return values
