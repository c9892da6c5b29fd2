import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from assertion import DEFAULT_VALIDITY_SECONDS, sign_assertion
from errors import (
    ConnectionFailure,
    IdentityStateError,
    InvalidCredential,
    RequestTimeout,
    TransportFailure,
    UninitializedAccess,
)
from private_key import PrivateKey
from transport import GitHubClient, TransportConfig, build_client, describe_response

log = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


@dataclass(frozen=True)
class ApplicationMetadata:
    name: str
    id: int
    client_id: str
    slug: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ApplicationMetadata":
        return cls(
            name=data.get("name") or "",
            id=int(data.get("id") or 0),
            client_id=data.get("client_id") or "",
            slug=data.get("slug") or "",
        )


def _validate_value(name: str, value: Optional[str]) -> str:
    if value is None:
        raise InvalidCredential(f"A valid {name} must be provided, none was supplied")
    result = str(value).strip()
    if not result:
        raise InvalidCredential(f"{name} contained no characters other than whitespace")
    return result


class GitHubApplication:
    """
    A GitHub App identity: the application id plus its private key.

    connect() signs a short-lived assertion, fetches GET /app and keeps the
    authenticated client for installation lookups and token requests.
    """

    def __init__(self, private_key, application_id: str, transport: Optional[TransportConfig] = None):
        if not isinstance(private_key, PrivateKey):
            private_key = PrivateKey.create(private_key)
        self._private_key = private_key
        self._id = _validate_value("application id", application_id)
        self._transport = transport or TransportConfig.resolve()
        self._client: Optional[GitHubClient] = None
        self._metadata: Optional[ApplicationMetadata] = None
        self._state = ConnectionState.UNINITIALIZED

    def connect(self, validity_seconds: int = DEFAULT_VALIDITY_SECONDS) -> ApplicationMetadata:
        if self._state is not ConnectionState.UNINITIALIZED:
            raise IdentityStateError(f"connect() can only be called once; application is {self._state.value}")

        self._state = ConnectionState.CONNECTING
        try:
            assertion = sign_assertion(self._id, self._private_key, validity_seconds)
        except Exception:
            self._state = ConnectionState.FAILED
            raise
        client = build_client(assertion, self._transport)

        log.debug("Attempting to fetch GitHub Application for the provided credentials...")
        try:
            resp = client.get("/app")
        except RequestTimeout:
            self._fail(client)
            raise
        except TransportFailure as e:
            self._fail(client)
            raise ConnectionFailure(f"Failure connecting as the application; {e}") from e

        if resp.status_code != 200:
            self._fail(client)
            raise ConnectionFailure(
                f"Failure connecting as the application with id:{self._id}; "
                f"status code: {resp.status_code}\n{describe_response(resp)}",
                status=resp.status_code,
                response=resp,
            )

        try:
            data = resp.json()
            metadata = ApplicationMetadata.from_json(data)
        except (ValueError, TypeError, AttributeError) as e:
            self._fail(client)
            raise ConnectionFailure(
                f"Unexpected response fetching the application with id:{self._id}; {e}",
                status=resp.status_code,
                response=resp,
            ) from e
        self._metadata = metadata
        self._client = client
        self._state = ConnectionState.CONNECTED
        log.debug("  GitHub Application resolved: %s", json.dumps(data))
        return self._metadata

    def _fail(self, client: GitHubClient) -> None:
        client.close()
        self._state = ConnectionState.FAILED

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def metadata(self) -> Optional[ApplicationMetadata]:
        return self._metadata

    @property
    def client(self) -> GitHubClient:
        if self._state is not ConnectionState.CONNECTED or self._client is None:
            raise UninitializedAccess(
                "Application has not been initialized correctly, call connect() to connect to GitHub first."
            )
        return self._client

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> Optional[str]:
        return self._metadata.name if self._metadata else None

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


def create_application(private_key, application_id: str, transport: Optional[TransportConfig] = None,
                       validity_seconds: int = DEFAULT_VALIDITY_SECONDS) -> GitHubApplication:
    app = GitHubApplication(private_key, application_id, transport)
    app.connect(validity_seconds)
    return app
