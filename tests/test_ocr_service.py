"""Unit tests for ocr_service.py"""
import dataclasses
import sys
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from field_extractors import extract_visa_number
from ocr_service import (
    ConversionError,
    ExtractedRecord,
    ExtractionError,
    OCRService,
    _join_rows,
    convert_pdf_to_image,
    is_pdf,
)


def _detection(text, x, y, width=100, height=20, confidence=0.9):
    bbox = [[x, y], [x + width, y], [x + width, y + height], [x, y + height]]
    return bbox, text, confidence


@pytest.fixture
def photo_locator():
    locator = MagicMock()
    locator.extract_profile_photo.return_value = "data:image/jpeg;base64,AAAA"
    return locator


@pytest.fixture
def reader():
    return MagicMock()


@pytest.fixture
def service(photo_locator, reader):
    return OCRService(photo_locator=photo_locator, reader=reader)


class TestBuildRecord:
    """Tests for OCRService.build_record."""

    def test_visa_record(self, service, visa_text):
        record = service.build_record(visa_text, "data:image/jpeg;base64,AAAA")

        assert record == ExtractedRecord(
            full_name="محمد الغزالي",
            email="mhmdalg@comfythings.com",
            passport_number="AB1234567",
            visa_number="6012345678",
            birth_date="15/03/1980",
            client_photo="data:image/jpeg;base64,AAAA",
        )

    def test_passport_record_from_mrz(self, service, passport_text):
        record = service.build_record(passport_text)

        assert record.full_name == "محمد الغزالي"
        assert record.email == "doejoh@comfythings.com"
        assert record.passport_number == "AB1234567"
        assert record.birth_date == "01/01/1985"
        assert record.visa_number == ""
        assert record.client_photo == ""

    def test_passport_name_falls_back_to_mrz(self, service, mrz_lines):
        line1, line2 = mrz_lines

        record = service.build_record(f"PASSPORT\n{line1}\n{line2}")

        assert record.full_name == "JOHN DOE"
        assert record.email == "doejoh@comfythings.com"

    def test_passport_without_mrz_uses_bio_page(self, service):
        text = (
            "PASSEPORT\n"
            "ROYAUME DU MAROC\n"
            "فاطمة الزهراء\n"
            "Passeport: MA1234567\n"
            "Date de naissance: 01-02-1985"
        )

        record = service.build_record(text)

        assert record.full_name == "فاطمة الزهراء"
        assert record.passport_number == "MA1234567"
        assert record.birth_date == "01/02/1985"
        assert record.email == "alzhraafat@comfythings.com"
        assert record.visa_number == ""

    def test_passport_never_has_visa_number(self, service, passport_text):
        """Should leave the visa number empty even when the text carries one."""
        text = f"Visa No: 6012345678\n{passport_text}"
        assert extract_visa_number(text) == "6012345678"

        record = service.build_record(text)

        assert record.passport_number == "AB1234567"
        assert record.visa_number == ""

    @pytest.mark.parametrize("text", ["", None, "@@@@ ####"])
    def test_unreadable_text_gives_empty_record(self, service, text):
        """Should never raise and always return all six fields."""
        record = service.build_record(text)

        assert record == ExtractedRecord()
        assert set(record.to_dict()) == {
            "full_name", "email", "passport_number", "visa_number", "birth_date", "client_photo",
        }

    def test_record_is_immutable(self, service, visa_text):
        record = service.build_record(visa_text, "data:image/jpeg;base64,AAAA")

        with pytest.raises(dataclasses.FrozenInstanceError):
            record.full_name = "edited"


class TestProcessDocument:
    """Tests for OCRService.process_document."""

    def test_image_upload(self, service, reader, photo_locator):
        reader.readtext.return_value = [
            _detection("Umrah", 10, 10),
            _detection("Visa", 120, 10),
            _detection("Visa No: 6012345678", 10, 60),
            _detection("Birth Date: 15/03/1980", 10, 110),
        ]

        record = service.process_document(b"image-bytes", "visa.jpg", "image/jpeg")

        reader.readtext.assert_called_once_with(b"image-bytes", detail=1, paragraph=False)
        photo_locator.extract_profile_photo.assert_called_once_with(b"image-bytes")
        assert record.visa_number == "6012345678"
        assert record.birth_date == "15/03/1980"
        assert record.client_photo == "data:image/jpeg;base64,AAAA"

    def test_pdf_upload_is_rasterized(self, service, reader, photo_locator):
        reader.readtext.return_value = []

        with patch("ocr_service.convert_from_bytes", return_value=[Image.new("RGB", (20, 10))]) as mock_convert:
            record = service.process_document(b"%PDF-1.4", "visa.pdf", "application/pdf")

        assert mock_convert.call_args.kwargs["dpi"] == pytest.approx(144)
        image_bytes = reader.readtext.call_args.args[0]
        assert image_bytes.startswith(b"\x89PNG")
        photo_locator.extract_profile_photo.assert_called_once_with(image_bytes)
        assert record.client_photo == "data:image/jpeg;base64,AAAA"

    def test_conversion_failure(self, service, reader):
        with patch("ocr_service.convert_from_bytes", side_effect=Exception("poppler missing")):
            with pytest.raises(ConversionError):
                service.process_document(b"%PDF-1.4", "visa.pdf", "application/pdf")

        reader.readtext.assert_not_called()

    def test_recognition_failure(self, service, reader, photo_locator):
        reader.readtext.side_effect = RuntimeError("engine crashed")

        with pytest.raises(ExtractionError):
            service.process_document(b"image-bytes", "visa.png", "image/png")

        photo_locator.extract_profile_photo.assert_not_called()


class TestConvertPdfToImage:
    """Tests for convert_pdf_to_image."""

    def test_renders_first_page_as_png(self):
        with patch("ocr_service.convert_from_bytes", return_value=[Image.new("RGB", (20, 10))]) as mock_convert:
            result = convert_pdf_to_image(b"%PDF-1.4", scale=2.0)

        assert result.startswith(b"\x89PNG")
        kwargs = mock_convert.call_args.kwargs
        assert kwargs["first_page"] == 1
        assert kwargs["last_page"] == 1
        assert kwargs["dpi"] == pytest.approx(144)

    def test_no_pages(self):
        with patch("ocr_service.convert_from_bytes", return_value=[]):
            with pytest.raises(ConversionError):
                convert_pdf_to_image(b"%PDF-1.4")

    def test_page_encoding_failure(self):
        page = MagicMock()
        page.save.side_effect = OSError("cannot write PNG")

        with patch("ocr_service.convert_from_bytes", return_value=[page]):
            with pytest.raises(ConversionError):
                convert_pdf_to_image(b"%PDF-1.4")

    def test_empty_page_encoding(self):
        """Should reject a page that encodes to no bytes."""
        page = MagicMock()

        with patch("ocr_service.convert_from_bytes", return_value=[page]):
            with pytest.raises(ConversionError):
                convert_pdf_to_image(b"%PDF-1.4")


class TestReader:
    """Tests for the lazily built recognition engine."""

    def test_reader_built_once(self, photo_locator):
        fake_easyocr = MagicMock()
        fake_easyocr.Reader.return_value.readtext.return_value = []
        service = OCRService(languages=["ar", "en"], gpu=False, photo_locator=photo_locator)

        with patch.dict(sys.modules, {"easyocr": fake_easyocr}):
            assert not service.is_reader_loaded
            service.extract_text_from_image(b"one")
            service.extract_text_from_image(b"two")

        assert service.is_reader_loaded
        fake_easyocr.Reader.assert_called_once_with(["ar", "en"], gpu=False, verbose=False)


@pytest.mark.parametrize("filename,content_type,expected", [
    ("scan.PDF", None, True),
    (None, "application/pdf", True),
    ("scan.png", "image/png", False),
    (None, None, False),
])
def test_is_pdf(filename, content_type, expected):
    assert is_pdf(filename, content_type) is expected


class TestJoinRows:
    """Tests for grouping detections into text lines."""

    def test_groups_rows_and_reads_arabic_right_to_left(self):
        result = [
            _detection("الغزالي", 100, 62),
            _detection("No", 120, 12),
            _detection("Visa", 10, 10),
            _detection("محمد", 300, 60),
        ]

        assert _join_rows(result) == "Visa No\nمحمد الغزالي"

    def test_separate_rows(self):
        result = [_detection("Line one", 10, 10), _detection("Line two", 10, 50)]

        assert _join_rows(result) == "Line one\nLine two"

    def test_empty(self):
        assert _join_rows([]) == ""
