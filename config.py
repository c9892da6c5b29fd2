import os
import re
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import actions
from access_tokens import parse_permissions
from errors import InvalidConfiguration, InvalidCredential
from transport import DEFAULT_TIMEOUT_MS, TransportConfig

_APPLICATION_ID_RE = re.compile(r"^[0-9]+$")


def bool_env(name: str, default: bool = False) -> bool:
    v = os.environ.get(name)
    if v is None:
        return default
    return v.lower() in {"1","true","yes","on"}


def int_env(name: str, default: int) -> int:
    v = (os.environ.get(name) or "").strip()
    if not v:
        return default
    try:
        return int(v)
    except ValueError:
        raise InvalidConfiguration(f"{name} must be an integer, was \"{v}\"") from None


def configure_logging() -> None:
    level = "DEBUG" if bool_env("RUNNER_DEBUG") else os.getenv("LOGLEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(message)s",
                        handlers=[actions.WorkflowCommandHandler()], force=True)


@dataclass(frozen=True)
class ActionInputs:
    private_key: str = field(repr=False)
    application_id: str
    organization: Optional[str] = None
    repository: Optional[str] = None
    permissions: Dict[str, str] = field(default_factory=dict)
    github_api_base_url: Optional[str] = None
    https_proxy: Optional[str] = None
    ignore_environment_proxy: bool = False
    revoke_token: bool = True
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def transport(self) -> TransportConfig:
        return TransportConfig.resolve(
            base_api_url=self.github_api_base_url,
            proxy_url=self.https_proxy,
            ignore_environment_proxy=self.ignore_environment_proxy,
            timeout_ms=self.timeout_ms,
        )


@dataclass(frozen=True)
class RevocationSettings:
    enabled: bool
    transport: TransportConfig


def _transport_inputs() -> dict:
    return dict(
        github_api_base_url=actions.get_input("github_api_base_url") or None,
        https_proxy=actions.get_input("https_proxy") or None,
        ignore_environment_proxy=actions.get_boolean_input("ignore_environment_proxy", False),
        timeout_ms=int_env("HTTP_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
    )


def validate_application_id(application_id: str) -> str:
    if not _APPLICATION_ID_RE.match(application_id or ""):
        raise InvalidConfiguration("Invalid application ID format. It must be a numeric string.")
    return application_id


def load_inputs() -> ActionInputs:
    """Read and validate the action inputs once, for either phase."""
    try:
        private_key = actions.get_input("application_private_key", required=True)
        application_id = actions.get_input("application_id", required=True)
    except InvalidConfiguration as e:
        raise InvalidCredential(str(e)) from None
    actions.set_secret(private_key)

    inputs = ActionInputs(
        private_key=private_key,
        application_id=validate_application_id(application_id),
        organization=actions.get_input("organization") or None,
        repository=(os.environ.get("GITHUB_REPOSITORY") or "").strip() or None,
        permissions=parse_permissions(actions.get_input("permissions")),
        revoke_token=actions.get_boolean_input("revoke_token", True),
        **_transport_inputs(),
    )
    # A malformed proxy fails here, before any request
    inputs.transport()
    return inputs


def load_revocation_settings() -> RevocationSettings:
    """The post phase only needs the revoke flag and the transport inputs."""
    values = _transport_inputs()
    transport = TransportConfig.resolve(
        base_api_url=values["github_api_base_url"],
        proxy_url=values["https_proxy"],
        ignore_environment_proxy=values["ignore_environment_proxy"],
        timeout_ms=values["timeout_ms"],
    )
    return RevocationSettings(enabled=actions.get_boolean_input("revoke_token", True), transport=transport)
