# access_tokens.py
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from errors import (
    InvalidArgument,
    RequestTimeout,
    RevocationFailure,
    TokenIssuanceFailure,
    TransportFailure,
)
from transport import GitHubClient, TransportConfig, build_client, describe_response

log = logging.getLogger(__name__)

ACCESS_LEVELS = {"read", "write", "admin"}
DEFAULT_PERMISSIONS = {"contents": "read"}


@dataclass(frozen=True)
class InstallationAccessToken:
    token: str = field(repr=False)
    expires_at: Optional[str] = None
    permissions: Dict[str, str] = field(default_factory=dict)
    repository_selection: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "InstallationAccessToken":
        return cls(
            token=data["token"],
            expires_at=data.get("expires_at"),
            permissions=dict(data.get("permissions") or {}),
            repository_selection=data.get("repository_selection"),
        )


def parse_permissions(text: Optional[str]) -> Dict[str, str]:
    """
    Parse "contents:write,issues:read" into {"contents": "write", "issues": "read"}.

    Entries that are not a `name:level` pair with a known level are skipped.
    When nothing valid remains the default {"contents": "read"} is returned.
    """
    permissions: Dict[str, str] = {}
    for entry in (text or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, level = entry.partition(":")
        name, level = name.strip(), level.strip().lower()
        if not sep or not name or level not in ACCESS_LEVELS:
            log.warning("Ignoring invalid permission entry: %s", entry)
            continue
        permissions[name] = level
    return permissions or dict(DEFAULT_PERMISSIONS)


def build_token_request(permissions: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    # No "permissions" field means the installation's full permission set
    if not permissions:
        return {}
    return {"permissions": {str(k).strip(): str(v).strip() for k, v in permissions.items()}}


def issue_token(client: GitHubClient, installation_id: int,
                permissions: Optional[Mapping[str, str]] = None) -> InstallationAccessToken:
    if not installation_id:
        raise InvalidArgument("GitHub Application installation id must be provided")

    body = build_token_request(permissions)
    try:
        resp = client.post(f"/app/installations/{installation_id}/access_tokens", json=body)
    except RequestTimeout:
        raise
    except TransportFailure as e:
        raise TokenIssuanceFailure(f"Failed to get access token for application installation; {e}") from e

    if resp.status_code != 201:
        raise TokenIssuanceFailure(
            f"Failed to get access token for application installation; "
            f"status code: {resp.status_code} {describe_response(resp)}",
            status=resp.status_code,
            response=resp,
        )
    try:
        data = resp.json()
    except ValueError as e:
        raise TokenIssuanceFailure(
            f"Access token response was not valid JSON; {e}", status=resp.status_code, response=resp
        ) from e
    if not isinstance(data, dict) or not data.get("token"):
        raise TokenIssuanceFailure("Access token response did not contain a token", status=201, response=resp)
    return InstallationAccessToken.from_json(data)


def revoke_token(token: str, config: TransportConfig) -> bool:
    """Invalidate an installation token, authenticating as that token."""
    if not token:
        raise InvalidArgument("An installation access token must be provided for revocation")

    with build_client(token, config) as client:
        try:
            resp = client.delete("/installation/token")
        except RequestTimeout:
            raise
        except TransportFailure as e:
            raise RevocationFailure(f"Failed to revoke application token; {e}") from e

    if resp.status_code == 204:
        return True
    raise RevocationFailure(
        f"Failed to revoke application token; status code: {resp.status_code} {describe_response(resp)}",
        status=resp.status_code,
        response=resp,
    )
