#!/usr/bin/env python3
"""
Receiver configuration, read once from the environment at startup.

A .env file in the working directory is loaded first, so every GH_* variable
can live there instead of the process environment.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import find_dotenv, load_dotenv

from errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_LISTEN = ':4040'
DEFAULT_CMD_ROOT = '/etc/githooker'
DEFAULT_MAX_RUN_SECS = 90
DEFAULT_LOG_LEVEL = 'INFO'
MAX_BODY_BYTES = 25 * 1024 * 1024


@dataclass(frozen=True)
class HookConfig:
    """Immutable settings shared by every request."""

    hmac_key: str
    listen: str = DEFAULT_LISTEN
    cmd_root: str = DEFAULT_CMD_ROOT
    max_run_secs: int = DEFAULT_MAX_RUN_SECS
    cmd_extensions: tuple = field(default_factory=tuple)
    log_level: str = DEFAULT_LOG_LEVEL
    max_body_bytes: int = MAX_BODY_BYTES

    def __post_init__(self):
        if not self.hmac_key:
            raise ConfigError('no GH_HMAC_KEY environment variable set (github hook secret)')
        # Lists handed in by callers are frozen too
        object.__setattr__(self, 'cmd_extensions', tuple(self.cmd_extensions))

    @property
    def hmac_key_bytes(self):
        return self.hmac_key.encode('utf-8')

    @property
    def listen_address(self):
        return parse_listen_address(self.listen)


def parse_listen_address(listen):
    """Split 'host:port' or ':port' into a (host, port) pair."""
    host, sep, port = listen.rpartition(':')
    if not sep:
        host, port = '', listen
    host = host.strip('[]') or '0.0.0.0'
    try:
        return host, int(port)
    except ValueError:
        raise ConfigError(f"invalid listen address '{listen}'")


def _max_run_secs(raw):
    if not raw:
        return DEFAULT_MAX_RUN_SECS
    try:
        return int(raw)
    except ValueError:
        logger.warning("GH_MAX_RUN_SECS is not a valid integer, ignoring (%s)", raw)
        return DEFAULT_MAX_RUN_SECS


def _environ(environ):
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ
    return environ


def load_command_settings(environ=None):
    """
    Read only the command root and extension list.

    Unlike load_config this does not need GH_HMAC_KEY, so tools that only
    look up commands can run without the secret.
    """
    environ = _environ(environ)
    return {
        'cmd_root': environ.get('GH_CMD_ROOT') or DEFAULT_CMD_ROOT,
        'cmd_extensions': tuple((environ.get('GH_CMD_EXTENSIONS') or '').split()),
    }


def load_config(environ=None):
    """Build a HookConfig from environ (defaults to os.environ plus .env)."""
    environ = _environ(environ)

    return HookConfig(
        hmac_key=environ.get('GH_HMAC_KEY', ''),
        listen=environ.get('GH_LISTEN_PORT') or DEFAULT_LISTEN,
        max_run_secs=_max_run_secs(environ.get('GH_MAX_RUN_SECS')),
        log_level=(environ.get('GH_LOG_LEVEL') or DEFAULT_LOG_LEVEL).upper(),
        **load_command_settings(environ)
    )
