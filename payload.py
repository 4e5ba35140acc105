#!/usr/bin/env python3
"""
Push event payload extraction.
"""

import json
from collections import namedtuple

from errors import ClientError

PushTarget = namedtuple('PushTarget', ['full_name', 'ref'])


def extract_push_target(data):
    """
    Pull the repository full name and ref out of a raw push event body.

    Raises ClientError when the body is not JSON, is not an object, or when
    repository.full_name or ref is missing or not a string.
    """
    try:
        body = json.loads(data)
    except (ValueError, UnicodeDecodeError) as e:
        raise ClientError(f'unable to decode body: {e}')

    if not isinstance(body, dict):
        raise ClientError('body is not a JSON object')

    repository = body.get('repository')
    if not isinstance(repository, dict):
        raise ClientError('repository missing or not an object')

    full_name = repository.get('full_name')
    if not isinstance(full_name, str):
        raise ClientError('repository.full_name missing or not a string')

    ref = body.get('ref')
    if not isinstance(ref, str):
        raise ClientError('ref missing or not a string')

    return PushTarget(full_name=full_name, ref=ref)
