"""
Thin layer over the GitHub Actions runner protocol.

Inputs arrive as INPUT_<NAME> environment variables, outputs and state are
appended to the files named by GITHUB_OUTPUT / GITHUB_STATE, and everything
else (masking, log levels, groups) is a "::command::" line on stdout.
See https://docs.github.com/actions/using-workflows/workflow-commands-for-github-actions
"""

import os
import sys
import uuid
import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Set

from errors import InvalidConfiguration

log = logging.getLogger(__name__)

MASK = "***"
_TRUE = {"true", "True", "TRUE"}
_FALSE = {"false", "False", "FALSE"}

_secrets: Set[str] = set()


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _issue(command: str, message: str = "", **properties: str) -> None:
    props = ",".join(f"{k}={_escape_data(v).replace(':', '%3A').replace(',', '%2C')}" for k, v in properties.items())
    line = f"::{command}{' ' + props if props else ''}::{_escape_data(message)}"
    sys.stdout.write(line + os.linesep)
    sys.stdout.flush()


def _issue_file_command(env_name: str, key: str, value: str) -> bool:
    path = os.environ.get(env_name)
    if not path:
        return False
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in key or delimiter in value:
        raise ValueError(f"Unexpected input: name or value contains the delimiter {delimiter}")
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")
    return True


# ---------------- Masking ----------------

def mask_secrets(text: str) -> str:
    # Longest first so a secret containing another secret is fully hidden
    for secret in sorted(_secrets, key=len, reverse=True):
        text = text.replace(secret, MASK)
    return text


def set_secret(value: Optional[str]) -> None:
    """Mask `value` in the runner's log and in everything logged by this process."""
    if not value:
        return
    _secrets.add(value)
    for line in value.splitlines():
        if line.strip():
            _secrets.add(line)
    _issue("add-mask", value)


class SecretMaskFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = mask_secrets(record.getMessage())
        record.args = ()
        return True


class WorkflowCommandHandler(logging.StreamHandler):
    """Render log records as workflow commands so the runner annotates them."""

    COMMANDS = {logging.DEBUG: "debug", logging.WARNING: "warning", logging.ERROR: "error"}

    def __init__(self, stream=None):
        super().__init__(sys.stdout if stream is None else stream)
        self.addFilter(SecretMaskFilter())

    def format(self, record: logging.LogRecord) -> str:
        text = mask_secrets(super().format(record))
        level = logging.ERROR if record.levelno >= logging.ERROR else record.levelno
        command = self.COMMANDS.get(level)
        if command is None:
            return text
        return f"::{command}::{_escape_data(text)}"


# ---------------- Inputs / outputs / state ----------------

def get_input(name: str, required: bool = False) -> str:
    value = os.environ.get(f"INPUT_{name.replace(' ', '_').upper()}", "").strip()
    if required and not value:
        raise InvalidConfiguration(f"Input required and not supplied: {name}")
    return value


def get_boolean_input(name: str, default: bool = False) -> bool:
    value = get_input(name)
    if not value:
        return default
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise InvalidConfiguration(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


def set_output(name: str, value: str) -> None:
    if not _issue_file_command("GITHUB_OUTPUT", name, value):
        _issue("set-output", value, name=name)


def save_state(name: str, value: str) -> None:
    if not _issue_file_command("GITHUB_STATE", name, value):
        _issue("save-state", value, name=name)


def get_state(name: str) -> str:
    return os.environ.get(f"STATE_{name}", "")


@contextmanager
def group(title: str) -> Iterator[None]:
    _issue("group", title)
    try:
        yield
    finally:
        _issue("endgroup")


def set_failed(message: str) -> None:
    log.error(message)
