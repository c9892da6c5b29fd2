import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple

from requests.utils import quote

from errors import InstallationNotFound, InvalidConfiguration, RequestTimeout, TransportFailure
from transport import GitHubClient, describe_response

log = logging.getLogger(__name__)


class InstallationScope(str, Enum):
    ORGANIZATION = "organization"
    REPOSITORY = "repository"


@dataclass(frozen=True)
class Installation:
    installation_id: int
    scope: InstallationScope
    owner: str
    target: str


def parse_repository(value: str) -> Tuple[str, str]:
    """Split `owner/repo`; anything else is a configuration error."""
    text = (value or "").strip()
    owner, sep, repo = text.partition("/")
    if not sep or not owner.strip() or not repo.strip() or "/" in repo:
        raise InvalidConfiguration(f"Invalid repository \"{value}\". Expected 'owner/repo'.")
    return owner.strip(), repo.strip()


def _resolve(client: GitHubClient, path: str, scope: InstallationScope, owner: str, target: str) -> Installation:
    not_installed = f"GitHub Application is not installed on {scope.value}: {target}"
    try:
        resp = client.get(path)
    except RequestTimeout:
        raise
    except TransportFailure as e:
        raise InstallationNotFound(f"{not_installed}; {e}") from e

    if resp.status_code != 200:
        raise InstallationNotFound(
            f"{not_installed}; status code: {resp.status_code} {describe_response(resp)}",
            status=resp.status_code,
            response=resp,
        )
    try:
        data = resp.json()
        installation_id = int(data.get("id") or 0) if isinstance(data, dict) else 0
    except (ValueError, TypeError) as e:
        raise InstallationNotFound(f"{not_installed}; unexpected response: {e}", status=200, response=resp) from e
    if not installation_id:
        raise InstallationNotFound(f"{not_installed}; response carried no installation id", status=200, response=resp)
    return Installation(installation_id=installation_id, scope=scope, owner=owner, target=target)


def resolve_for_organization(client: GitHubClient, org: str) -> Installation:
    org = (org or "").strip()
    if not org:
        raise InvalidConfiguration("An organization name must be provided")
    log.info("Obtaining application installation for organization: %s", org)
    return _resolve(client, f"/orgs/{quote(org, safe='')}/installation", InstallationScope.ORGANIZATION, org, org)


def resolve_for_repository(client: GitHubClient, owner: str, repo: str) -> Installation:
    target = f"{owner}/{repo}"
    owner, repo = parse_repository(target)
    log.info("Obtaining application installation for repository: %s", target)
    path = f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/installation"
    return _resolve(client, path, InstallationScope.REPOSITORY, owner, target)


def list_installations(client: GitHubClient) -> List[Dict[str, Any]]:
    try:
        resp = client.get("/app/installations")
    except RequestTimeout:
        raise
    except TransportFailure as e:
        raise InstallationNotFound(f"Failed to get application installations; {e}") from e
    if resp.status_code != 200:
        raise InstallationNotFound(
            f"Failed to get application installations; status code: {resp.status_code} {describe_response(resp)}",
            status=resp.status_code,
            response=resp,
        )
    try:
        data = resp.json()
    except ValueError as e:
        raise InstallationNotFound(f"Failed to get application installations; {e}", status=200, response=resp) from e
    if not isinstance(data, list):
        raise InstallationNotFound("Failed to get application installations; expected a list", status=200, response=resp)
    return data
