"""
File name patterns for exported resolutions.

    fileNamePattern: "{{resolutionId}} - {{fromEntity.shortName}} Distribution"
"""

import re

from .renderer import format_value
from .values import ValueStore

PLACEHOLDER_PATTERN = re.compile(r'\{\{\s*([^}]+?)\s*\}\}')
INVALID_CHARS = re.compile(r'[/\\?%*|"<>:]')


def sanitize_file_name(name: str) -> str:
    """Strip characters that are illegal in file names on common platforms."""
    return INVALID_CHARS.sub('', name).strip()


def render_file_name(pattern: str, store: ValueStore) -> str:
    """
    Substitute {{path}} placeholders with scalar text, then sanitize.

    Missing values render as empty strings. No filters or blocks.
    """
    def replace(match):
        value = store.lookup(match.group(1))
        if isinstance(value, (dict, list)):
            return ''
        return format_value(value)

    return sanitize_file_name(PLACEHOLDER_PATTERN.sub(replace, pattern or ''))
