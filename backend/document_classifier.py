"""
Document Type Classifier
Decides whether recognized text comes from a visa or a passport using MRZ shape and keyword signals.
"""

import re
import logging
from typing import Optional

from config import DOCUMENT_TYPES, DOCUMENT_TYPE_PASSPORT, DOCUMENT_TYPE_VISA

logger = logging.getLogger(__name__)


class DocumentClassifier:
    """Classify documents based on text content and patterns."""

    def __init__(self):
        """Compile detection patterns for each document type."""
        passport = DOCUMENT_TYPES[DOCUMENT_TYPE_PASSPORT]
        visa = DOCUMENT_TYPES[DOCUMENT_TYPE_VISA]

        self.mrz_patterns = [re.compile(pattern) for pattern in passport['patterns']]
        self.passport_keywords = re.compile(passport['keywords'])
        self.visa_keywords = re.compile(visa['keywords'])

    def has_mrz(self, text: str) -> bool:
        """True if the text contains a passport MRZ shape."""
        return any(pattern.search(text) for pattern in self.mrz_patterns)

    def classify(self, text: Optional[str]) -> str:
        """
        Classify document based on recognized text.

        Rules are tested in order: MRZ shape, passport keywords, visa keywords.
        Uncertain documents default to visa.

        Args:
            text: Recognized text from the document

        Returns:
            'passport' or 'visa'
        """
        if not text:
            logger.debug("Empty text, defaulting to visa")
            return DOCUMENT_TYPE_VISA

        if self.has_mrz(text):
            logger.info("Classified as passport (MRZ pattern)")
            return DOCUMENT_TYPE_PASSPORT

        if self.passport_keywords.search(text):
            logger.info("Classified as passport (keywords)")
            return DOCUMENT_TYPE_PASSPORT

        if self.visa_keywords.search(text):
            logger.info("Classified as visa (keywords)")
            return DOCUMENT_TYPE_VISA

        logger.info("No document signals found, defaulting to visa")
        return DOCUMENT_TYPE_VISA
