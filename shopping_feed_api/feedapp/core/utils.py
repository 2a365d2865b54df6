"""
Utility functions.
"""

import re
from html import unescape
from typing import Optional
from urllib.parse import urlparse


def strip_html(text: Optional[str]) -> str:
    """
    Convert rich text to plain text.

    Tags are removed first, then entities are decoded, so ``&lt;b&gt;`` in the
    source survives as the literal text ``<b>``. The result is NOT escaped.
    """
    if not text:
        return ''
    # Block-level tags separate words
    text = re.sub(r'<\s*(br|/p|/div|/li|/h[1-6])\s*/?\s*>', ' ', text, flags=re.IGNORECASE)
    text = re.sub(r'<!--.*?-->', '', text, flags=re.DOTALL)
    text = re.sub(r'<(script|style)\b.*?</\1\s*>', '', text, flags=re.IGNORECASE | re.DOTALL)
    text = re.sub(r'<[^>]+>', '', text)
    text = unescape(text)
    return re.sub(r'\s+', ' ', text).strip()


def parse_url_domain(url: str) -> Optional[str]:
    """Extract hostname (without port) from URL."""
    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
        return hostname.lower() if hostname else None
    except Exception:
        return None
