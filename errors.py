#!/usr/bin/env python3
"""
Error types raised while receiving and dispatching hooks.

Only ClientError and AuthError ever reach the webhook sender, as a 400 or
401 response with a short fixed message. The detail is for the server log.
"""


class GithookerError(Exception):
    """Base class for githooker errors."""

    status_code = None
    message = 'internal error'

    def __init__(self, detail=None, message=None):
        if message is not None:
            self.message = message
        self.detail = detail or self.message
        super().__init__(self.detail)


class ClientError(GithookerError):
    """Missing, unreadable, oversized or malformed request body."""

    status_code = 400
    message = 'bad request body'


class AuthError(GithookerError):
    """Missing, malformed or invalid signature header."""

    status_code = 401
    message = 'unauthorized'


class DispatchMiss(GithookerError):
    """No command exists for the pushed repository and ref."""

    message = 'command not found'


class LaunchError(GithookerError):
    """A command existed but could not be started."""

    message = 'command did not start'


class ConfigError(GithookerError, ValueError):
    """Required configuration is missing or invalid at startup."""

    message = 'invalid configuration'
