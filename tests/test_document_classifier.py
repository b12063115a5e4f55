"""Unit tests for document_classifier.py"""
import pytest

from document_classifier import DocumentClassifier


@pytest.fixture
def classifier():
    return DocumentClassifier()


class TestClassify:
    """Tests for DocumentClassifier.classify."""

    def test_mrz_line1_means_passport(self, classifier):
        """Should classify text with a P<CCC MRZ prefix as passport."""
        assert classifier.classify("some header\nP<MARDOE<<JOHN<<<<") == "passport"

    def test_mrz_line2_run_means_passport(self, classifier):
        """Should classify a passport#+nationality+birth date run as passport."""
        assert classifier.classify("AB1234567MAR8501019") == "passport"

    @pytest.mark.parametrize("keyword", ["Passport", "PASSEPORT", "جواز سفر", "Royaume du Maroc", "KINGDOM"])
    def test_passport_keywords(self, classifier, keyword):
        """Should classify passport keywords as passport, case-insensitively."""
        assert classifier.classify(f"header {keyword} footer") == "passport"

    @pytest.mark.parametrize("keyword", ["Umrah", "VISA", "تأشيرة", "entry", "Hajj"])
    def test_visa_keywords(self, classifier, keyword):
        """Should classify visa keywords as visa."""
        assert classifier.classify(f"header {keyword} footer") == "visa"

    def test_passport_keywords_win_over_visa_keywords(self, classifier):
        """Should test passport signals before visa signals."""
        assert classifier.classify("Umrah Visa\nPassport No: AB1234567") == "passport"

    @pytest.mark.parametrize("text", ["", None, "lorem ipsum dolor", "12345"])
    def test_defaults_to_visa(self, classifier, text):
        """Should default to visa when no signal is present."""
        assert classifier.classify(text) == "visa"

    def test_is_pure(self, classifier, passport_text, visa_text):
        """Should return the same answer for the same text."""
        for text in (passport_text, visa_text):
            results = {classifier.classify(text) for _ in range(5)}
            assert len(results) == 1
