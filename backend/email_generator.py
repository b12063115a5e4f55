"""
Deterministic client email synthesis.

Visa:     first name + first 3 letters of the second name
Passport: MRZ last name + first 3 letters of the MRZ first name
The two orders differ on purpose and must stay that way.
"""
import re
import logging
from typing import List, Optional

from config import (
    ARABIC_TO_LATIN,
    EMAIL_DOMAIN,
    EMAIL_ENGLISH_NAME_PATTERN,
    EMAIL_LABEL_DENYLIST,
    EMAIL_SURNAME_PREFIX_LENGTH,
)
from field_extractors import has_arabic
from mrz_parser import MRZData

logger = logging.getLogger(__name__)

_LABEL_RE = re.compile('^(?:' + '|'.join(EMAIL_LABEL_DENYLIST) + ')', re.IGNORECASE)


def transliterate_arabic(arabic_text: str) -> str:
    """Map Arabic letters to Latin; keep ASCII letters, digits and whitespace, drop the rest"""
    result = []
    for char in arabic_text:
        if char in ARABIC_TO_LATIN:
            result.append(ARABIC_TO_LATIN[char])
        elif char.isspace() or (char.isascii() and char.isalnum()):
            result.append(char)
    return ''.join(result)


def build_email(prefix: str) -> str:
    """Lower-case the handle, keep ASCII letters only; empty handle means no email"""
    handle = re.sub(r'[^a-z]', '', prefix.lower())
    if not handle:
        return ''
    return f"{handle}@{EMAIL_DOMAIN}"


def _latin_name_parts(name: str) -> List[str]:
    return transliterate_arabic(name).split()


def _email_from_english_text(text: str) -> str:
    """First 'First Last' pair in the text that is not a field label"""
    for match in re.finditer(EMAIL_ENGLISH_NAME_PATTERN, text):
        first, second = match.group(1), match.group(2)
        if _LABEL_RE.match(first):
            continue

        email = build_email(first + second[:EMAIL_SURNAME_PREFIX_LENGTH])
        if email:
            return email

    return ''


def generate_email(text: str, detected_name: str) -> str:
    """Visa path email: from the Arabic name if present, else from English text"""
    if has_arabic(detected_name):
        parts = _latin_name_parts(detected_name)

        if len(parts) >= 2:
            email = build_email(parts[0] + parts[1][:EMAIL_SURNAME_PREFIX_LENGTH])
        elif len(parts) == 1:
            email = build_email(parts[0])
        else:
            email = ''

        if email:
            return email
        logger.debug(f"Name {detected_name!r} transliterated to nothing usable")

    return _email_from_english_text(text or '')


def generate_email_from_passport(mrz_data: Optional[MRZData], detected_name: str) -> str:
    """Passport path email: MRZ names first, Arabic name (last + first) as fallback"""
    if mrz_data and mrz_data.last_name and mrz_data.first_name:
        last_name = mrz_data.last_name.lower().replace(' ', '')
        first_name = mrz_data.first_name.lower().replace(' ', '')
        email = build_email(last_name + first_name[:EMAIL_SURNAME_PREFIX_LENGTH])
        if email:
            return email

    if has_arabic(detected_name):
        parts = _latin_name_parts(detected_name)
        if len(parts) >= 2:
            return build_email(parts[-1] + parts[0][:EMAIL_SURNAME_PREFIX_LENGTH])

    return ''
