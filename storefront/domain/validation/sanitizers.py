# storefront/domain/validation/sanitizers.py
"""String sanitizers applied to client text before it reaches the database.

``sanitize_html`` is a blocklist, not an HTML parser.
"""
import re

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JAVASCRIPT_URI = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def _strip_blocklisted(value: str) -> str:
    value = _SCRIPT_BLOCK.sub("", value)
    value = _JAVASCRIPT_URI.sub("", value)
    value = _EVENT_HANDLER.sub("", value)
    return value


def sanitize_html(value: str) -> str:
    # repeat until stable: removing one token can join the halves of another
    previous = None
    while previous != value:
        previous = value
        value = _strip_blocklisted(value)
    return value.strip()


def sanitize_slug(value: str) -> str:
    value = value.lower()
    value = re.sub(r"[^a-z0-9\s-]", "", value)
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"-+", "-", value)
    return value.strip("-")


def sanitize_sku(value: str) -> str:
    value = value.upper()
    value = re.sub(r"[^A-Z0-9\s_-]", "", value)
    value = re.sub(r"\s+", "-", value)
    return value.strip()
