"""
Field extractors for visa and passport OCR text.

Each extractor is independent: it tries an ordered list of patterns over the
raw recognized text and returns the first hit, or an empty string.
Name extraction adds script-aware clean-up and an Arabic line-scan fallback.
"""
import re
import logging
from typing import List

from config import (
    ARABIC_CHAR_PATTERN,
    ARABIC_HEADER_WORDS,
    FIELD_PATTERNS,
    NAME_HEADER_PATTERN,
    NAME_LABELS,
    NAME_LINE_PATTERNS,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    NAME_NOISE_WORDS,
    NAME_REJECTED_WORDS,
    NAME_SPAN_PATTERN,
    NAME_STRAY_FRAGMENTS,
    PASSPORT_ARABIC_HEADER_WORDS,
    PASSPORT_HEADER_PATTERN,
    PASSPORT_NAME_ARABIC_RATIO,
    PASSPORT_NAME_MIN_LENGTH,
)

logger = logging.getLogger(__name__)

ARABIC_RE = re.compile(ARABIC_CHAR_PATTERN)

_LABELS_RE = re.compile('|'.join(map(re.escape, NAME_LABELS)), re.IGNORECASE)
_NOISE_RE = re.compile(r'\b(?:' + '|'.join(map(re.escape, NAME_NOISE_WORDS)) + r')\b', re.IGNORECASE | re.ASCII)
_REJECTED_RE = re.compile('(?:' + '|'.join(map(re.escape, NAME_REJECTED_WORDS)) + ')', re.IGNORECASE)
_STRAY_RE = re.compile('|'.join(map(re.escape, NAME_STRAY_FRAGMENTS)), re.IGNORECASE)
# lowercase only: capitalized Latin words are left for the noise denylist
_SHORT_LATIN_RE = re.compile(r'\b[a-z]{1,4}\b', re.ASCII)
_CAPITALIZED_LATIN_RE = re.compile(r'\b[A-Z][a-z]+\b', re.ASCII)

_HEADER_RE = re.compile(NAME_HEADER_PATTERN)
_ARABIC_HEADER_RE = re.compile('|'.join(ARABIC_HEADER_WORDS))
_PASSPORT_HEADER_RE = re.compile(PASSPORT_HEADER_PATTERN)
_PASSPORT_ARABIC_HEADER_RE = re.compile('|'.join(PASSPORT_ARABIC_HEADER_WORDS))


def has_arabic(text: str) -> bool:
    return bool(text) and ARABIC_RE.search(text) is not None


def extract_field_with_pattern(text: str, patterns: List[str]) -> str:
    """
    Extract field value using regex patterns.
    Returns the captured group, or the whole match for ungrouped patterns.
    """
    for pattern in patterns:
        match = re.search(pattern, text)
        if match:
            value = match.group(1) if match.groups() else match.group(0)
            return value.strip()

    return ""


def extract_passport_number(text: str) -> str:
    return extract_field_with_pattern(text, FIELD_PATTERNS['passport_number'])


def extract_visa_number(text: str) -> str:
    return extract_field_with_pattern(text, FIELD_PATTERNS['visa_number'])


def extract_birth_date(text: str) -> str:
    return extract_field_with_pattern(text, FIELD_PATTERNS['birth_date'])


def extract_passport_number_from_passport(text: str) -> str:
    """Passport number from bio page labels (used when no MRZ is readable)"""
    return extract_field_with_pattern(text, FIELD_PATTERNS['passport_page_number'])


def extract_birth_date_from_passport(text: str) -> str:
    """Birth date from bio page labels, normalized to DD/MM/YYYY"""
    value = extract_field_with_pattern(text, FIELD_PATTERNS['passport_page_birth_date'])
    return value.replace('-', '/')


def clean_name_candidate(raw: str) -> str:
    """
    Clean a raw name candidate.
    Returns an empty string when nothing name-like survives.
    """
    s = raw.replace('\n', ' ')
    s = _LABELS_RE.sub('', s)
    s = re.sub(r'[:,\-.]', ' ', s)
    s = re.sub(r'\s+', ' ', s.strip())

    # Arabic names: drop Latin noise around them
    if has_arabic(s):
        s = _SHORT_LATIN_RE.sub('', s).strip()
        s = _STRAY_RE.sub('', s).strip()
        s = re.sub(r'\d+', '', s).strip()

    s = _NOISE_RE.sub('', s)
    s = re.sub(r'\s+', ' ', s).strip()

    if len(s) < NAME_MIN_LENGTH or _REJECTED_RE.fullmatch(s):
        return ''

    return s


def _extract_labelled_name(text: str) -> str:
    """Strategy 1: text between the name label and the next field label"""
    match = re.search(NAME_SPAN_PATTERN, text)
    if match:
        return match.group(1)

    for pattern in NAME_LINE_PATTERNS:
        match = re.search(pattern, text)
        if match:
            return match.group(1)

    return ''


def _scan_arabic_name_lines(text: str) -> str:
    """Strategy 2: first non-header Arabic line that looks like a full name"""
    for line in text.split('\n'):
        trimmed = line.strip()
        if not has_arabic(trimmed):
            continue

        if _HEADER_RE.search(line) or _ARABIC_HEADER_RE.search(trimmed):
            continue

        candidate = clean_name_candidate(trimmed)
        if len(candidate.split(' ')) >= 2 and len(candidate) < NAME_MAX_LENGTH:
            return candidate

    return ''


def extract_name(text: str) -> str:
    """
    Extract the client's full name from visa or passport text.

    The labelled span is tried first. When it yields nothing usable, or
    nothing Arabic, the text is scanned line by line for an Arabic name,
    which then takes precedence.
    """
    text = text or ''
    final_name = clean_name_candidate(_extract_labelled_name(text))

    if (len(final_name) < NAME_MIN_LENGTH or not has_arabic(final_name)) and len(text) > 10:
        scanned = _scan_arabic_name_lines(text)
        if scanned:
            logger.debug(f"Arabic line scan replaced name {final_name!r} with {scanned!r}")
            final_name = scanned

    return final_name


def extract_arabic_name_from_passport(text: str) -> str:
    """Arabic name printed on the passport bio page, or empty string"""
    for line in (text or '').split('\n'):
        trimmed = line.strip()

        if not has_arabic(trimmed):
            continue
        if _PASSPORT_ARABIC_HEADER_RE.search(trimmed) or _PASSPORT_HEADER_RE.search(trimmed):
            continue

        candidate = _LABELS_RE.sub('', trimmed)
        candidate = re.sub(r'[:\-.،]', ' ', candidate)
        candidate = _CAPITALIZED_LATIN_RE.sub('', candidate)
        candidate = re.sub(r'\d+', '', candidate)
        words = candidate.split()
        candidate = ' '.join(words)

        if len(words) < 2 or not PASSPORT_NAME_MIN_LENGTH <= len(candidate) < NAME_MAX_LENGTH:
            continue

        arabic_chars = len(ARABIC_RE.findall(candidate))
        total_chars = len(candidate.replace(' ', ''))
        if arabic_chars / total_chars >= PASSPORT_NAME_ARABIC_RATIO:
            logger.info(f"Found Arabic name on passport: {candidate}")
            return candidate

    return ''
