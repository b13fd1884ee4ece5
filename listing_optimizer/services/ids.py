# listing_optimizer/services/ids.py
import re

from .errors import InvalidAsinError

# ASINs are 10 upper-case alphanumerics; ISBN-10 style ones start with a digit.
_ASIN_RE = re.compile(r"^[A-Z0-9]{10}$")

# /dp/<ASIN> or /gp/product/<ASIN> inside a pasted product URL
_ASIN_IN_URL_RE = re.compile(r"/(?:dp|gp/product)/([A-Za-z0-9]{10})(?:[/?]|$)")


def normalize_asin(value: str) -> str:
    """Return the canonical ASIN for a raw identifier or product URL."""
    candidate = (value or "").strip()
    m = _ASIN_IN_URL_RE.search(candidate)
    if m:
        candidate = m.group(1)
    candidate = candidate.upper()
    if not _ASIN_RE.match(candidate):
        raise InvalidAsinError(f"Not a valid ASIN: {value!r}")
    return candidate
