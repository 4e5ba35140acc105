#!/usr/bin/env python3
"""
GitHub push webhook receiver.

Every POST, on any path, is authenticated against X-Hub-Signature-256 and then
dispatched to the command matching the pushed repository and ref. The sender
gets 200 as soon as the request is accepted, whether or not a command ran.
"""

import logging
import sys

from flask import Flask, Response, request, jsonify
from werkzeug.exceptions import ClientDisconnected, RequestEntityTooLarge

from commands import CommandLauncher, CommandResolver, dispatch
from config import load_config
from errors import AuthError, ClientError, ConfigError, DispatchMiss, GithookerError, LaunchError
from payload import extract_push_target
from signature import SIGNATURE_HEADER, parse_signature, valid_mac

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def configure_logging(level='INFO'):
    logging.basicConfig(level=level, format=LOG_FORMAT)


def text_response(message, status_code):
    return Response(message, status=status_code, mimetype='text/plain')


def read_body():
    """Read the whole request body, bounded by MAX_CONTENT_LENGTH."""
    try:
        data = request.get_data(cache=True)
    except RequestEntityTooLarge:
        raise ClientError(f'body exceeds {request.max_content_length} bytes')
    except (ClientDisconnected, OSError) as e:
        raise ClientError(f'error reading body: {e}')

    if not data:
        raise ClientError('empty request body', message='missing request body')
    return data


def authenticate(data, key):
    """Raise AuthError unless the signature header matches data."""
    header = request.headers.get(SIGNATURE_HEADER, '')
    if not header:
        raise AuthError(f'missing {SIGNATURE_HEADER} header')

    signature = parse_signature(header)
    if signature is None:
        raise AuthError(f'bad {SIGNATURE_HEADER} header {header}')

    if not valid_mac(data, signature, key):
        raise AuthError(f'bad {SIGNATURE_HEADER} header {header}')


def create_app(config, launcher=None):
    """Build the receiver for config. launcher is swappable for tests."""
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config.max_body_bytes

    resolver = CommandResolver(config.cmd_root, config.cmd_extensions)
    launcher = launcher or CommandLauncher(config.max_run_secs)

    @app.errorhandler(GithookerError)
    def handle_hook_error(e):
        logger.warning("%s: %s", type(e).__name__, e.detail)
        return text_response(e.message, e.status_code or 500)

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({'status': 'healthy'})

    @app.route('/', defaults={'path': ''}, methods=['POST'])
    @app.route('/<path:path>', methods=['POST'])
    def handle_webhook(path):
        """Handle a GitHub push event."""
        data = read_body()
        authenticate(data, config.hmac_key_bytes)
        target = extract_push_target(data)

        logger.info("push to %s on %s", target.full_name, target.ref)
        try:
            dispatch(resolver, launcher, target, data)
        except DispatchMiss as e:
            logger.warning(e.detail)
        except LaunchError:
            # the launcher has already logged why
            pass

        return text_response('hook processed', 200)

    return app


def run_server(config):
    """Serve the receiver until interrupted, one thread per request."""
    host, port = config.listen_address
    app = create_app(config)
    logger.info("githooker: initialized, listening on %s:%d", host, port)
    app.run(host=host, port=port, threaded=True)


def main():
    try:
        config = load_config()
    except ConfigError as e:
        configure_logging()
        logger.critical(e.detail)
        sys.exit(1)

    configure_logging(config.log_level)
    run_server(config)


if __name__ == '__main__':
    main()
