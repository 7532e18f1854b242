"""Content reference and ARNS URL helpers.

Content references are Arweave transaction IDs: 43 characters of the base64url alphabet.
"""

import re

from arns_migrate.models import ROOT_UNDERNAME

CONTENT_REFERENCE_REGEX = re.compile(r'^[a-zA-Z0-9_-]{43}$')
CONTENT_URL_REGEX = re.compile(r'^https://[a-zA-Z0-9_-]+\.arweave\.net/[a-zA-Z0-9_-]+$')

# NOTE: Host-qualified patterns go first; the trailing segment one matches almost anything
CONTENT_REFERENCE_PATTERNS = (
    re.compile(r'arweave\.net/([a-zA-Z0-9_-]{43})'),
    re.compile(r'ar\.io/([a-zA-Z0-9_-]{43})'),
    re.compile(r'/([a-zA-Z0-9_-]{43})$'),
)


def is_valid_content_reference(id_: str) -> bool:
    # NOTE: `fullmatch`, since `$` allows a trailing newline
    return CONTENT_REFERENCE_REGEX.fullmatch(id_) is not None


def is_valid_content_url(url: str) -> bool:
    """Check that URL has exactly `https://<subdomain>.arweave.net/<id>` shape"""
    return CONTENT_URL_REGEX.fullmatch(url) is not None


def extract_content_reference(url: str) -> str | None:
    """Extract transaction ID from various Arweave URL formats"""
    for pattern in CONTENT_REFERENCE_PATTERNS:
        match = pattern.search(url)
        if match and is_valid_content_reference(match[1]):
            return match[1]
    return None


def is_root_undername(undername: str | None) -> bool:
    return not undername or undername == ROOT_UNDERNAME


def format_arns_url(name: str, undername: str | None = ROOT_UNDERNAME) -> str:
    if is_root_undername(undername):
        return f'https://{name}.ar.io'
    return f'https://{undername}_{name}.ar.io'
