"""
Main phase of the action: connect as the GitHub App, find its installation
for the configured organization (or the current repository), mint an
installation access token and publish it as the `token` output.

The token is also saved to the action state so the post phase can revoke it,
unless `revoke_token` is false.
"""

import sys
import json
import logging
from typing import Optional

from dotenv import load_dotenv

import actions
import config
from access_tokens import issue_token
from errors import ApplicationTokenError
from github_app import create_application
from installations import parse_repository, resolve_for_organization, resolve_for_repository

log = logging.getLogger(__name__)

STATE_TOKEN = "token"
OUTPUT_TOKEN = "token"


def report_error_details(err: BaseException) -> None:
    resp = getattr(err, "response", None)
    if resp is None:
        return
    with actions.group("Error Details"):
        log.info(
            "Response\n  status: %s\n  url: %s\n  headers: %s",
            resp.status_code, resp.url, json.dumps(dict(resp.headers)),
        )


def fail(err: Optional[BaseException], message: Optional[str] = None) -> int:
    if err is not None:
        log.error("%s", err)
        log.debug("%s failure", type(err).__name__, exc_info=err)
        report_error_details(err)
    actions.set_failed(message or (str(err) if err else "") or "An unknown error occurred")
    return 1


def run() -> int:
    try:
        inputs = config.load_inputs()
        app = create_application(inputs.private_key, inputs.application_id, inputs.transport())
    except Exception as e:
        return fail(e, "Failed to initialize GitHub Application connection using provided ID and private key")

    log.info("Found GitHub Application: %s", app.name)
    try:
        if inputs.organization:
            installation = resolve_for_organization(app.client, inputs.organization)
        else:
            owner, repo = parse_repository(inputs.repository or "")
            installation = resolve_for_repository(app.client, owner, repo)

        access_token = issue_token(app.client, installation.installation_id, inputs.permissions)
        actions.set_secret(access_token.token)
        actions.set_output(OUTPUT_TOKEN, access_token.token)
        log.info("Successfully generated an access token for the application.")

        if inputs.revoke_token:
            actions.save_state(STATE_TOKEN, access_token.token)
    except ApplicationTokenError as e:
        return fail(e)
    except Exception as e:
        return fail(e, f"Unexpected failure while generating the access token: {e}")
    finally:
        app.close()
    return 0


def cli() -> None:
    load_dotenv()
    config.configure_logging()
    sys.exit(run())


if __name__ == "__main__":
    cli()
