"""
OCR processing service using EasyOCR (Arabic + English)
Rasterizes PDFs, recognizes text and assembles the client record for one upload.
"""
import io
import logging
import os
import threading
from dataclasses import asdict, dataclass, replace
from typing import Dict, List, Optional

from pdf2image import convert_from_bytes

from config import (
    DOCUMENT_TYPE_PASSPORT,
    OCR_GPU,
    OCR_LANGUAGES,
    PDF_BASE_DPI,
    PDF_RENDER_SCALE,
    POPPLER_PATH,
)
from document_classifier import DocumentClassifier
from email_generator import generate_email, generate_email_from_passport
from field_extractors import (
    extract_arabic_name_from_passport,
    extract_birth_date,
    extract_birth_date_from_passport,
    extract_name,
    extract_passport_number,
    extract_passport_number_from_passport,
    extract_visa_number,
    has_arabic,
)
from mrz_parser import MRZParser
from photo_locator import PhotoLocator

logger = logging.getLogger(__name__)


class ConversionError(Exception):
    """PDF page could not be rendered to an image"""


class ExtractionError(Exception):
    """Text recognition failed for the uploaded document"""


@dataclass(frozen=True)
class ExtractedRecord:
    full_name: str = ""
    email: str = ""
    passport_number: str = ""
    visa_number: str = ""
    birth_date: str = ""
    client_photo: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def is_pdf(filename: Optional[str], content_type: Optional[str]) -> bool:
    if content_type and content_type.lower() == 'application/pdf':
        return True
    return bool(filename) and os.path.splitext(filename)[1].lower() == '.pdf'


def convert_pdf_to_image(pdf_bytes: bytes, scale: float = PDF_RENDER_SCALE) -> bytes:
    """
    Render the first PDF page to PNG bytes at `scale` x the page's intrinsic size.
    Raises ConversionError if the page cannot be rendered or encoded.
    """
    try:
        pages = convert_from_bytes(
            pdf_bytes,
            dpi=PDF_BASE_DPI * scale,
            first_page=1,
            last_page=1,
            poppler_path=POPPLER_PATH,
        )
    except Exception as e:
        raise ConversionError(f"PDF conversion failed: {e}") from e

    if not pages:
        raise ConversionError("PDF conversion produced no pages")

    buffer = io.BytesIO()
    try:
        pages[0].save(buffer, format='PNG')
    except (OSError, ValueError) as e:
        raise ConversionError(f"Page image encoding failed: {e}") from e

    image_bytes = buffer.getvalue()
    if not image_bytes:
        raise ConversionError("Page image encoding produced no data")

    logger.info(f"Converted PDF page 1 to image ({pages[0].width}x{pages[0].height})")
    return image_bytes


def _join_rows(result: List) -> str:
    """
    Join EasyOCR detections into text lines.
    Fragments on the same visual row are joined with spaces; Arabic rows read right to left.
    """
    detections = sorted(result, key=lambda x: (x[0][0][1], x[0][0][0]))

    rows = []
    for bbox, text, _confidence in detections:
        ys = [point[1] for point in bbox]
        top, bottom = min(ys), max(ys)
        center = (top + bottom) / 2
        left = min(point[0] for point in bbox)

        if rows and abs(center - rows[-1]['center']) <= rows[-1]['height'] / 2:
            rows[-1]['items'].append((left, text))
        else:
            rows.append({'center': center, 'height': bottom - top, 'items': [(left, text)]})

    lines = []
    for row in rows:
        arabic_items = sum(1 for _, text in row['items'] if has_arabic(text))
        right_to_left = arabic_items * 2 > len(row['items'])
        items = sorted(row['items'], key=lambda item: item[0], reverse=right_to_left)
        lines.append(' '.join(text for _, text in items))

    return '\n'.join(lines)


class OCRService:
    def __init__(
        self,
        languages: Optional[List[str]] = None,
        gpu: bool = OCR_GPU,
        photo_locator: Optional[PhotoLocator] = None,
        reader=None,
    ):
        """Initialize OCR service; the EasyOCR reader is built on first use"""
        self.languages = languages or OCR_LANGUAGES
        self.gpu = gpu
        self._reader = reader
        self._reader_lock = threading.Lock()

        self.classifier = DocumentClassifier()
        self.mrz_parser = MRZParser()
        self.photo_locator = photo_locator or PhotoLocator()

    @property
    def is_reader_loaded(self) -> bool:
        return self._reader is not None

    def _get_reader(self):
        if self._reader is not None:
            return self._reader

        with self._reader_lock:
            if self._reader is None:
                import easyocr

                logger.info(f"Initializing EasyOCR reader for {self.languages} (first use)")
                self._reader = easyocr.Reader(self.languages, gpu=self.gpu, verbose=False)
                logger.info("EasyOCR initialized")

        return self._reader

    def extract_text_from_image(self, image_bytes: bytes) -> str:
        """
        Extract text from image using EasyOCR.
        Raises ExtractionError if the engine fails.
        """
        try:
            reader = self._get_reader()
            result = reader.readtext(image_bytes, detail=1, paragraph=False)
        except Exception as e:
            raise ExtractionError(f"Text recognition failed: {e}") from e

        text = _join_rows(result)
        logger.debug(f"Extracted OCR text:\n{text}")
        return text.strip()

    def build_record(self, text: str, client_photo: str = '') -> ExtractedRecord:
        """
        Turn recognized text into a client record.
        Never raises: unmatched fields are left empty.
        """
        text = text or ''
        document_type = self.classifier.classify(text)
        logger.info(f"Detected document type: {document_type}")

        if document_type == DOCUMENT_TYPE_PASSPORT:
            record = self._build_passport_record(text)
        else:
            record = self._build_visa_record(text)

        return replace(record, client_photo=client_photo or '')

    def _build_visa_record(self, text: str) -> ExtractedRecord:
        full_name = extract_name(text)

        return ExtractedRecord(
            full_name=full_name,
            email=generate_email(text, full_name),
            passport_number=extract_passport_number(text),
            visa_number=extract_visa_number(text),
            birth_date=extract_birth_date(text),
        )

    def _build_passport_record(self, text: str) -> ExtractedRecord:
        mrz_data = self.mrz_parser.parse_mrz(text)

        if mrz_data:
            passport_number = mrz_data.passport_number
            birth_date = mrz_data.date_of_birth
            mrz_name = f"{mrz_data.first_name} {mrz_data.last_name}".strip()
        else:
            logger.info("No MRZ on passport, using bio page patterns")
            passport_number = extract_passport_number_from_passport(text) or extract_passport_number(text)
            birth_date = extract_birth_date_from_passport(text) or extract_birth_date(text)
            mrz_name = ''

        # Arabic bio page name, then the general name, then the MRZ name
        full_name = extract_arabic_name_from_passport(text) or extract_name(text) or mrz_name

        return ExtractedRecord(
            full_name=full_name,
            email=generate_email_from_passport(mrz_data, full_name),
            passport_number=passport_number,
            visa_number='',
            birth_date=birth_date,
        )

    def process_document(
        self, file_bytes: bytes, filename: Optional[str] = None, content_type: Optional[str] = None
    ) -> ExtractedRecord:
        """
        Run the full pipeline for one uploaded file (PDF or image).

        Raises:
            ConversionError: the PDF could not be rasterized
            ExtractionError: text recognition failed
        """
        if is_pdf(filename, content_type):
            logger.info(f"Converting PDF to image: {filename}")
            image_bytes = convert_pdf_to_image(file_bytes)
        else:
            image_bytes = file_bytes

        text = self.extract_text_from_image(image_bytes)
        client_photo = self.photo_locator.extract_profile_photo(image_bytes)

        record = self.build_record(text, client_photo)
        logger.info(
            f"Extracted record: name={'yes' if record.full_name else 'no'}, "
            f"passport={record.passport_number or '-'}, visa={record.visa_number or '-'}"
        )
        return record
