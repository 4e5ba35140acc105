#!/usr/bin/env python3
"""
Hook command resolution and launching.

A push to org/repo on refs/heads/main maps to the executable
<cmd_root>/org/repo/refs/heads/main, or to the same path with one of the
configured extensions appended (main.sh, main.py, ...).
"""

import logging
import os
import posixpath
import subprocess
import threading

from errors import DispatchMiss, LaunchError

logger = logging.getLogger(__name__)


def clean_component(name):
    """
    Lexically clean a path fragment so it cannot climb out of its parent.

    The fragment is anchored at '/' before normalizing, so leading '..'
    segments collapse away instead of surviving the way they would in a
    relative path.
    """
    return posixpath.normpath('/' + name).lstrip('/')


class CommandResolver:
    """Maps a push target to candidate command paths under the root."""

    def __init__(self, cmd_root, extensions=()):
        self.cmd_root = os.path.normpath(cmd_root)
        self.extensions = tuple(extensions)

    def base_path(self, target):
        """Return the extensionless command path, or None if it is unsafe."""
        repo = clean_component(target.full_name)
        ref = clean_component(target.ref)
        if not repo or not ref:
            return None

        path = os.path.join(self.cmd_root, repo, ref)
        root = os.path.abspath(self.cmd_root)
        if os.path.commonpath([root, os.path.abspath(path)]) != root:
            return None
        return path

    def candidates(self, target):
        """Every path worth trying, base path first, then each extension."""
        base = self.base_path(target)
        if base is None:
            return []
        return [base] + [base + ext for ext in self.extensions]

    def resolve(self, target):
        """Return the first existing candidate, or None."""
        for path in self.candidates(target):
            if os.path.isfile(path):
                return path
        return None


class CommandLauncher:
    """Starts hook commands and reaps them in the background."""

    def __init__(self, timeout=90):
        # Anything but a positive number means no limit
        self.timeout = timeout if timeout and timeout > 0 else None

    def launch(self, path, data):
        """
        Start path with data on its stdin.

        Returns the reaper thread once the process is running, or None when
        path does not exist. Raises LaunchError if the process cannot be
        started at all. Stdout and stderr are inherited from the server.
        """
        if not os.path.isfile(path):
            return None

        logger.info("running %s", path)
        try:
            proc = subprocess.Popen([path], stdin=subprocess.PIPE)
        except OSError as e:
            logger.error("error running command '%s': %s", path, e)
            raise LaunchError(f"error running command '{path}': {e}")

        logger.info("command '%s' executing (pid %d)", path, proc.pid)

        reaper = threading.Thread(
            target=self._reap,
            args=(path, proc, data),
            name=f'reap-{proc.pid}',
            daemon=True
        )
        try:
            reaper.start()
        except RuntimeError as e:
            # Without a reaper nothing enforces the timeout
            proc.kill()
            proc.stdin.close()
            proc.wait()
            logger.error("unable to reap command '%s', killed it: %s", path, e)
            raise LaunchError(f"unable to reap command '{path}': {e}")
        return reaper

    def _reap(self, path, proc, data):
        try:
            proc.communicate(input=data, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            logger.warning("command '%s' exceeded %ss, killing it", path, self.timeout)
            proc.kill()
            proc.communicate()
        logger.info("command '%s' completed (exit %s)", path, proc.returncode)


def dispatch(resolver, launcher, target, data):
    """
    Launch the first candidate command that starts.

    Returns the reaper thread of the started command. Raises DispatchMiss if
    no candidate exists, or the last LaunchError if candidates existed but
    none of them could be started.
    """
    candidates = resolver.candidates(target)
    launch_error = None

    for path in candidates:
        try:
            reaper = launcher.launch(path, data)
        except LaunchError as e:
            launch_error = e
            continue
        if reaper is not None:
            return reaper

    if launch_error is not None:
        raise launch_error

    base = candidates[0] if candidates else f'{target.full_name}/{target.ref}'
    raise DispatchMiss(
        f"unable to locate command '{base}' (tried extensions {list(resolver.extensions)})"
    )
