"""
SMS segment ("unit") counting and message text helpers.

GSM-7 messages fit 160 characters in one segment, 153 per segment once
concatenated. Anything outside the GSM 03.38 basic character set forces
UCS-2: 70 single, 67 concatenated, counted in UTF-16 code units so an
emoji (surrogate pair) costs two.
"""

import math
import re
from dataclasses import dataclass

GSM7 = 'GSM-7'
UCS2 = 'UCS-2'

GSM7_SINGLE = 160
GSM7_CONCAT = 153
UCS2_SINGLE = 70
UCS2_CONCAT = 67

# GSM 03.38 basic character set (extension table excluded).
GSM7_BASIC_CHARSET = frozenset(
    '@£$¥èéùìòÇ\nØø\rÅå'
    'Δ_ΦΓΛΩΠΨΣΘΞ\x1bÆæßÉ'
    ' !"#¤%&\'()*+,-./'
    '0123456789:;<=>?'
    '¡ABCDEFGHIJKLMNO'
    'PQRSTUVWXYZÄÖÑÜ§'
    '¿abcdefghijklmno'
    'pqrstuvwxyzäöñüà'
)


@dataclass(frozen=True)
class MessageUnits:
    length: int
    units: int
    encoding: str
    chars_per_unit: int


def is_gsm7(text):
    return all(ch in GSM7_BASIC_CHARSET for ch in text)


def utf16_length(text):
    return len(text.encode('utf-16-le')) // 2


def calculate_units(text):
    text = text or ''
    if is_gsm7(text):
        encoding, single, concat = GSM7, GSM7_SINGLE, GSM7_CONCAT
        length = len(text)
    else:
        encoding, single, concat = UCS2, UCS2_SINGLE, UCS2_CONCAT
        length = utf16_length(text)

    if length == 0:
        return MessageUnits(length=0, units=0, encoding=encoding, chars_per_unit=single)
    if length <= single:
        return MessageUnits(length=length, units=1, encoding=encoding, chars_per_unit=single)
    return MessageUnits(
        length=length,
        units=math.ceil(length / concat),
        encoding=encoding,
        chars_per_unit=concat,
    )


def render_template(text, variables):
    """Fill {{key}} and {key} placeholders, matching keys case-insensitively."""
    if not variables:
        return text
    for key, value in variables.items():
        pattern = re.compile(r'\{\{' + re.escape(str(key)) + r'\}\}|\{' + re.escape(str(key)) + r'\}', re.IGNORECASE)
        text = pattern.sub(lambda _m: str(value), text)
    return text


def sanitize_message(text):
    """Trim, normalize line endings, collapse runs of blank lines and spaces."""
    text = (text or '').strip()
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = re.sub(r'\n{3,}', '\n\n', text)
    return re.sub(r'[ \t]{2,}', ' ', text)
