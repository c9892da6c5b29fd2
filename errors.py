# errors.py
from typing import Optional

import requests


class ApplicationTokenError(Exception):
    """Base class for every failure raised while minting or revoking a token.

    `status` and `response` are set when the failure came from an upstream
    HTTP response, so the run boundary can report the details.
    """

    def __init__(self, message: str, status: Optional[int] = None,
                 response: Optional[requests.Response] = None):
        super().__init__(message)
        self.status = status
        self.response = response


class InvalidConfiguration(ApplicationTokenError):
    pass


class InvalidCredential(ApplicationTokenError):
    pass


class InvalidArgument(ApplicationTokenError):
    pass


class SigningFailure(ApplicationTokenError):
    pass


class IdentityStateError(ApplicationTokenError):
    pass


class UninitializedAccess(IdentityStateError):
    pass


class TransportFailure(ApplicationTokenError):
    pass


class RequestTimeout(TransportFailure):
    pass


class ConnectionFailure(ApplicationTokenError):
    pass


class InstallationNotFound(ApplicationTokenError):
    pass


class TokenIssuanceFailure(ApplicationTokenError):
    pass


class RevocationFailure(ApplicationTokenError):
    pass
