import json
import os
import stat

import pytest

from config import HookConfig
from signature import sign_payload

SECRET = 'It\'s a Secret to Everybody'


class FakeLauncher:
    """Records launch attempts; paths in `started` pretend to start."""

    def __init__(self, started=(), failing=()):
        self.started = set(started)
        self.failing = set(failing)
        self.calls = []

    def launch(self, path, data):
        from errors import LaunchError

        self.calls.append((path, data))
        if path in self.failing:
            raise LaunchError(f"error running command '{path}'")
        if path in self.started:
            return object()
        return None


@pytest.fixture
def secret():
    return SECRET


@pytest.fixture
def cmd_root(tmp_path):
    root = tmp_path / 'githooker'
    root.mkdir()
    return root


@pytest.fixture
def make_config(cmd_root):
    def _make(**overrides):
        values = {
            'hmac_key': SECRET,
            'cmd_root': str(cmd_root),
            'cmd_extensions': ('.sh',),
            'max_run_secs': 5,
        }
        values.update(overrides)
        return HookConfig(**values)
    return _make


@pytest.fixture
def write_command(cmd_root):
    """Create an executable hook script under the command root."""
    def _write(relpath, body='#!/bin/sh\nexit 0\n', executable=True):
        path = cmd_root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body)
        mode = os.stat(path).st_mode
        if executable:
            os.chmod(path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        else:
            os.chmod(path, mode & ~(stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
        return path
    return _write


def push_body(full_name='org/repo', ref='refs/heads/main'):
    return json.dumps({
        'ref': ref,
        'repository': {'full_name': full_name}
    }).encode('utf-8')


def signed_headers(data, key=SECRET):
    return {'X-Hub-Signature-256': sign_payload(data, key.encode('utf-8'))}
