#!/usr/bin/env python3
"""
GitHub client for managing the push webhooks that feed the receiver.
"""

import os

from dotenv import find_dotenv, load_dotenv
from github import Auth, Github

from errors import ConfigError

# Load environment variables
load_dotenv(find_dotenv(usecwd=True))

DEFAULT_API_URL = 'https://api.github.com'
HOOK_EVENTS = ['push']


class GitHubClient:
    """Handles GitHub token authentication and webhook operations."""

    def __init__(self, token=None, api_url=None):
        self.token = token or os.getenv('GITHUB_TOKEN')
        self.api_url = api_url or os.getenv('GITHUB_API_URL', DEFAULT_API_URL)

        if not self.token:
            raise ConfigError("GITHUB_TOKEN not set in environment")

        self._github = None

    def get_github_instance(self):
        """Get an authenticated GitHub instance using PyGithub."""
        if self._github is None:
            self._github = Github(auth=Auth.Token(self.token), base_url=self.api_url)
        return self._github

    def get_repo(self, full_name):
        return self.get_github_instance().get_repo(full_name)

    def list_hooks(self, full_name):
        """Return the delivery URLs of every webhook on the repository."""
        repo = self.get_repo(full_name)
        return [hook.config.get('url') for hook in repo.get_hooks()]

    def find_hook(self, repo, url):
        for hook in repo.get_hooks():
            if hook.config.get('url') == url:
                return hook
        return None

    def register_push_hook(self, full_name, url, secret):
        """
        Point a push webhook at url, signed with secret.

        An existing hook for the same url is updated in place, so running this
        twice never leaves duplicate deliveries behind.
        """
        repo = self.get_repo(full_name)
        config = {
            'url': url,
            'content_type': 'json',
            'secret': secret,
            'insecure_ssl': '0'
        }

        hook = self.find_hook(repo, url)
        if hook is not None:
            hook.edit('web', config, events=HOOK_EVENTS, active=True)
            return {
                'status': 'updated',
                'id': hook.id,
                'url': url
            }

        hook = repo.create_hook('web', config, events=HOOK_EVENTS, active=True)
        return {
            'status': 'created',
            'id': hook.id,
            'url': url
        }
