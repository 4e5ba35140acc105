#!/usr/bin/env python3
"""
Githooker CLI - serve the receiver, dry-run command lookup, send signed test
pushes, and register or list webhooks.
"""

import argparse
import dataclasses
import json
import sys

import requests
from github import GithubException

from app import configure_logging, run_server
from commands import CommandResolver
from config import load_command_settings, load_config
from errors import ConfigError
from github_client import GitHubClient
from payload import PushTarget
from signature import SIGNATURE_HEADER, sign_payload


class GithookerCLI:
    def __init__(self, config=None):
        self._config = config

    @property
    def config(self):
        if self._config is None:
            self._config = load_config()
        return self._config

    def command_settings(self):
        if self._config is not None:
            return {
                'cmd_root': self._config.cmd_root,
                'cmd_extensions': self._config.cmd_extensions
            }
        return load_command_settings()

    def serve(self, listen=None):
        config = self.config
        if listen:
            config = dataclasses.replace(config, listen=listen)
        configure_logging(config.log_level)
        run_server(config)
        return 0

    def resolve(self, full_name, ref):
        settings = self.command_settings()
        resolver = CommandResolver(settings['cmd_root'], settings['cmd_extensions'])
        target = PushTarget(full_name=full_name, ref=ref)

        candidates = resolver.candidates(target)
        if not candidates:
            print(f"❌ '{full_name}' / '{ref}' does not map to a path under {resolver.cmd_root}")
            return 1

        selected = resolver.resolve(target)

        print(f"Candidates for {full_name} on {ref}:")
        for path in candidates:
            mark = "✓" if path == selected else " "
            print(f"  {mark} {path}")

        if selected is None:
            print("\nNo command found; pushes to this ref are accepted but nothing runs.")
            return 1

        print(f"\nWould run: {selected}")
        return 0

    def build_payload(self, full_name, ref, payload_file=None):
        if payload_file:
            with open(payload_file, 'rb') as f:
                return f.read()
        return json.dumps({
            'ref': ref,
            'repository': {'full_name': full_name}
        }).encode('utf-8')

    def send(self, url, full_name, ref, payload_file=None, timeout=10):
        data = self.build_payload(full_name, ref, payload_file)
        headers = {
            'Content-Type': 'application/json',
            'X-GitHub-Event': 'push',
            SIGNATURE_HEADER: sign_payload(data, self.config.hmac_key_bytes)
        }

        print(f"Sending push for {full_name} on {ref} to {url}")
        try:
            resp = requests.post(url, data=data, headers=headers, timeout=timeout)
        except requests.RequestException as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        print(f"Status: {resp.status_code}, Body: {resp.text}")
        return 0 if resp.status_code == 200 else 1

    def register(self, full_name, url):
        try:
            client = GitHubClient()
            result = client.register_push_hook(full_name, url, self.config.hmac_key)
        except (ConfigError, GithubException) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        print(f"✓ Webhook {result['status']} for {full_name} (id {result['id']})")
        print(f"  URL: {result['url']}")
        return 0

    def hooks(self, full_name):
        try:
            urls = GitHubClient().list_hooks(full_name)
        except (ConfigError, GithubException) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        if not urls:
            print(f"No webhooks configured for {full_name}")
            return 0

        print(f"Webhooks for {full_name}:")
        for url in urls:
            print(f"  - {url}")
        return 0

    def main(self, argv=None):
        parser = argparse.ArgumentParser(
            prog='githooker',
            description='Githooker - run commands on GitHub push webhooks',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Run the receiver
  %(prog)s serve --listen :4040

  # Show which command a push would run
  %(prog)s resolve org/repo refs/heads/main

  # Send a signed test push to a running receiver
  %(prog)s send http://localhost:4040/ --repo org/repo --ref refs/heads/main

  # Register the receiver as a push webhook on GitHub
  %(prog)s register org/repo https://hooks.example.com/

  # List the webhooks already configured on a repository
  %(prog)s hooks org/repo
"""
        )

        subparsers = parser.add_subparsers(dest='command', help='Command to run')

        serve_parser = subparsers.add_parser('serve', help='Run the webhook receiver')
        serve_parser.add_argument(
            '--listen',
            help='Listen address, host:port or :port (overrides GH_LISTEN_PORT)'
        )

        resolve_parser = subparsers.add_parser('resolve', help='Show the command a push would run')
        resolve_parser.add_argument('repo', help='Repository full name, e.g. org/repo')
        resolve_parser.add_argument('ref', help='Ref, e.g. refs/heads/main')

        send_parser = subparsers.add_parser('send', help='Send a signed test push')
        send_parser.add_argument('url', help='Receiver URL')
        send_parser.add_argument('--repo', required=True, help='Repository full name')
        send_parser.add_argument('--ref', default='refs/heads/main', help='Ref to push')
        send_parser.add_argument(
            '--file',
            help='Send this JSON file as the body instead of a minimal push payload'
        )

        register_parser = subparsers.add_parser('register', help='Register a push webhook on GitHub')
        register_parser.add_argument('repo', help='Repository full name')
        register_parser.add_argument('url', help='Public URL of the receiver')

        hooks_parser = subparsers.add_parser('hooks', help='List webhooks configured on GitHub')
        hooks_parser.add_argument('repo', help='Repository full name')

        args = parser.parse_args(argv)

        if not args.command:
            parser.print_help()
            return 0

        try:
            if args.command == 'serve':
                return self.serve(listen=args.listen)
            elif args.command == 'resolve':
                return self.resolve(args.repo, args.ref)
            elif args.command == 'send':
                return self.send(args.url, args.repo, args.ref, payload_file=args.file)
            elif args.command == 'register':
                return self.register(args.repo, args.url)
            elif args.command == 'hooks':
                return self.hooks(args.repo)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1


def main():
    sys.exit(GithookerCLI().main())


if __name__ == '__main__':
    main()
