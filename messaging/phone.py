"""
Phone number normalization and carrier detection.

classify() never raises: problems are reported on the returned
PhoneNumber as itemized errors (rejecting) or warnings (informational).
Output is idempotent: classify(p.normalized).normalized == p.normalized.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from messaging.numbering import (
    AFRICAN_COUNTRIES, AFRICAN_ISO_CODES, CARRIER_BLOCKS, LOCAL_FORMATS, OTHER_COUNTRIES,
)

MIN_LENGTH = 10  # including '+', so 9 digits
MAX_LENGTH = 16
LENGTH_ERROR = 'Phone number must have between 9 and 15 digits after the +'

_STRIP = re.compile(r'[^\d+]')

# Longest calling code first
_COUNTRIES_BY_CODE = sorted(AFRICAN_COUNTRIES + OTHER_COUNTRIES, key=lambda c: -len(c.calling_code))
_AFRICAN_CODES = sorted({c.calling_code for c in AFRICAN_COUNTRIES}, key=len, reverse=True)

_BLOCKS = {}
for _block in CARRIER_BLOCKS:
    _BLOCKS.setdefault((_block.iso, _block.prefix), _block)


@dataclass
class PhoneNumber:
    raw: str
    normalized: str = ''
    country: Optional[str] = None
    calling_code: Optional[str] = None
    network: Optional[str] = None
    operator: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self):
        return not self.errors

    @property
    def is_african(self):
        return self.country in AFRICAN_ISO_CODES


def _to_international(cleaned, warnings):
    if cleaned.startswith('+'):
        return '+' + cleaned[1:].replace('+', '')

    digits = cleaned.replace('+', '')
    if digits.startswith('00'):
        return '+' + digits[2:]

    if digits.startswith('0'):
        for fmt in LOCAL_FORMATS:
            if len(digits) == fmt.local_length:
                return '+' + fmt.calling_code + digits[1:]

    for code in _AFRICAN_CODES:
        if digits.startswith(code):
            return '+' + digits

    if len(digits) >= 9:
        warnings.append('Assumed international format; country undetermined')
        return '+' + digits
    return digits


def detect_country(normalized):
    """Return the CountryPlan whose calling code prefixes `normalized`, or None."""
    digits = normalized.lstrip('+')
    for plan in _COUNTRIES_BY_CODE:
        if digits.startswith(plan.calling_code):
            return plan
    return None


def detect_network(iso, national):
    """Match the leading 3, then 2 national digits against known carrier blocks."""
    for size in (3, 2):
        block = _BLOCKS.get((iso, national[:size]))
        if block:
            return block
    return None


def classify(raw):
    result = PhoneNumber(raw=raw if raw is not None else '')
    if raw is None or not str(raw).strip():
        result.errors.append('Phone number is required')
        return result

    cleaned = _STRIP.sub('', str(raw))
    normalized = _to_international(cleaned, result.warnings)
    result.normalized = normalized

    if not normalized.startswith('+'):
        result.errors.append('Phone number must start with + and country code')
    if len(normalized) < MIN_LENGTH or len(normalized) > MAX_LENGTH:
        result.errors.append(LENGTH_ERROR)

    plan = detect_country(normalized) if normalized.startswith('+') else None
    if plan:
        result.country = plan.iso
        result.calling_code = plan.calling_code
        block = detect_network(plan.iso, normalized[1 + len(plan.calling_code):])
        if block:
            result.network = block.network
            result.operator = block.operator

    if normalized.startswith('+') and not result.is_african:
        result.warnings.append('Non-African phone number')

    return result


def mask_phone(phone):
    """+233241234567 -> +233***567"""
    if not phone or len(phone) <= 4:
        return '***'
    return f'{phone[:4]}***{phone[-3:]}'
