#!/usr/bin/env python3
"""
HMAC-SHA256 signatures for the X-Hub-Signature-256 header.
"""

import binascii
import hashlib
import hmac

SIGNATURE_HEADER = 'X-Hub-Signature-256'
SIGNATURE_PREFIX = 'sha256='


def valid_mac(message, message_mac, key):
    """Check message_mac against the HMAC-SHA256 of message in constant time."""
    if message_mac is None:
        return False
    expected_mac = hmac.new(key, message, hashlib.sha256).digest()
    return hmac.compare_digest(message_mac, expected_mac)


def parse_signature(header):
    """
    Return the raw MAC bytes from a 'sha256=<hex>' header value.

    Anything else (no prefix, a repeated prefix, empty, odd-length or
    non-hex digest) gives None rather than partial bytes.
    """
    if not header:
        return None

    parts = header.split(SIGNATURE_PREFIX)
    if len(parts) != 2 or parts[0]:
        return None

    digest = parts[1]
    if not digest:
        return None

    try:
        return binascii.unhexlify(digest)
    except (binascii.Error, ValueError):
        return None


def sign_payload(payload, key):
    """Build the header value a provider would send for payload."""
    mac = hmac.new(key, payload, hashlib.sha256).digest()
    return SIGNATURE_PREFIX + binascii.hexlify(mac).decode('ascii')
