"""Post phase of the action: revoke the token minted by the main phase."""

import sys
import logging

from dotenv import load_dotenv

import actions
import config
from access_tokens import revoke_token
from errors import RevocationFailure, TransportFailure
from main import STATE_TOKEN, fail, report_error_details

log = logging.getLogger(__name__)


def run() -> int:
    try:
        settings = config.load_revocation_settings()
        if not settings.enabled:
            log.info("Token revocation is disabled, nothing to revoke.")
            return 0

        token = actions.get_state(STATE_TOKEN)
        if not token:
            log.info("No valid token stored in the action state, nothing to revoke.")
            return 0

        actions.set_secret(token)
        log.info("Performing GitHub Application token revocation...")
        revoke_token(token, settings.transport)
        log.info("Token has been successfully revoked.")
    except (RevocationFailure, TransportFailure) as e:
        # The token still expires on its own
        log.warning("Failed to revoke GitHub Application token: %s", e)
        report_error_details(e)
    except Exception as e:
        return fail(e, f"Failed to revoke GitHub Application token: {e}")
    return 0


def cli() -> None:
    load_dotenv()
    config.configure_logging()
    sys.exit(run())


if __name__ == "__main__":
    cli()
