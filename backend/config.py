"""
Configuration for the visa/passport extraction pipeline.
Environment settings plus the keyword, denylist and pattern tables used by the parsers.
"""
import os

from dotenv import load_dotenv

load_dotenv()


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clients.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# EasyOCR language codes - Arabic + Latin script hint
OCR_LANGUAGES = [lang.strip() for lang in os.getenv("OCR_LANGUAGES", "ar,en").split(",") if lang.strip()]
OCR_GPU = os.getenv("OCR_GPU", "false").lower() in ("1", "true", "yes")

# PDF pages are rendered at this multiple of their intrinsic 72 dpi
PDF_RENDER_SCALE = float(os.getenv("PDF_RENDER_SCALE", "2.0"))
PDF_BASE_DPI = 72
POPPLER_PATH = os.getenv("POPPLER_PATH") or None

PHOTO_MAX_DIMENSION = int(os.getenv("PHOTO_MAX_DIMENSION", "1200"))
PHOTO_FACE_PADDING = 0.5  # total padding, split evenly on both sides
PHOTO_FACE_JPEG_QUALITY = 90
PHOTO_FALLBACK_JPEG_QUALITY = 80

EMAIL_DOMAIN = os.getenv("EMAIL_DOMAIN", "comfythings.com")

ALLOWED_EXTENSIONS = {"pdf", "png", "jpg", "jpeg"}


# ---------------------------------------------------------------------------
# Document types
# ---------------------------------------------------------------------------

DOCUMENT_TYPE_VISA = "visa"
DOCUMENT_TYPE_PASSPORT = "passport"

DOCUMENT_TYPES = {
    DOCUMENT_TYPE_PASSPORT: {
        # MRZ shapes: "P<" + issuing state, or passport#+nationality+birth date run
        "patterns": [
            r"P<[A-Z]{3}",
            r"[A-Z0-9]{9}[A-Z]{3}[0-9]{7}",
        ],
        "keywords": r"(?i)passport|passeport|جواز\s*سفر|royaume|kingdom",
    },
    DOCUMENT_TYPE_VISA: {
        "patterns": [],
        "keywords": r"(?i)visa|تأشيرة|entry|umrah|hajj",
    },
}


# ---------------------------------------------------------------------------
# Field patterns (tried in order, first match wins)
# ---------------------------------------------------------------------------

FIELD_PATTERNS = {
    "passport_number": [
        r"(?i)Passport\s*No[.:\s]+([A-Z0-9]+)",
        r"رقم\s*جواز\s*السفر[:\s]+([A-Z0-9]+)",
        r"[A-Z]{1,2}[0-9]{7,9}",  # bare shape anywhere
    ],
    "visa_number": [
        r"(?i)Visa\s*No[.:\s]+([0-9]+)",
        r"رقم\s*التأشيرة[:\s]+([0-9]+)",
        r"(?a)\b[0-9]{10,12}\b",
    ],
    "birth_date": [
        r"(?i)Birth\s*Date[:\s]+([0-9]{2}/[0-9]{2}/[0-9]{4})",
        r"تاريخ\s*الميلاد[:\s]+([0-9]{2}/[0-9]{2}/[0-9]{4})",
        r"(?a)\b[0-9]{2}/[0-9]{2}/[0-9]{4}\b",
    ],
    # Passport bio page (no MRZ found)
    "passport_page_number": [
        r"(?ai)(?:Passport|Passeport|N°\s*de\s*Passeport|رقم\s*الجواز)[:\s]+([A-Z]{2}[0-9]{7,9})",
        r"(?a)\b([A-Z]{2}[0-9]{7,9})\b",
    ],
    "passport_page_birth_date": [
        r"(?ai)(?:Date\s*of\s*birth|Date\s*de\s*naissance|تاريخ\s*الميلاد)[:\s]+([0-9]{2}[/\-][0-9]{2}[/\-][0-9]{4})",
        r"(?a)\b([0-9]{2}[/\-][0-9]{2}[/\-][0-9]{4})\b",
    ],
}


# ---------------------------------------------------------------------------
# Name extraction tables
# ---------------------------------------------------------------------------

ARABIC_CHAR_PATTERN = r"[\u0600-\u06FF]"

# Labels stripped from raw name candidates
NAME_LABELS = ["Name", "الاسم", "Full", "Applicant"]

# Anchored span: "Name ... <next label>"
NAME_SPAN_PATTERN = (
    r"(?i)(?:Name|الاسم)[:\s,.|]+([\s\S]+?)"
    r"(?=(?:Birth|تاريخ|Passport|رقم|Nationality|الجنسية|Issue|Visa|Duration))"
)
NAME_LINE_PATTERNS = [
    r"(?i)Name[:\s,.|]+([^\n]+)",
    r"الاسم[:\s]+([^\n]+)",
]

# OCR noise picked up from visa headers
NAME_NOISE_WORDS = ["KSA", "Kingdom", "Arabia", "Saudi", "He", "Al", "The", "Visa", "Digital", "Embassy"]

# A cleaned candidate equal to one of these is rejected
NAME_REJECTED_WORDS = ["Al", "He", "The", "Of", "In", "By"]

# Latin fragments OCR produces next to Arabic text ("English" -> "glis")
NAME_STRAY_FRAGMENTS = ["glis"]

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50

# Only "Kingdom" is anchored to the line start
NAME_HEADER_PATTERN = r"(?i)^Kingdom|Ministry|Visa|Passport|Date|Duration|Place"

ARABIC_HEADER_WORDS = [
    "المملكة", "العربية", "السعودية", "وزارة", "الخارجية", "تأشيرة",
    "زيارة", "مرور", "جواز", "تاريخ", "الجنسية", "المهنة", "صاحب", "العمل",
]

# Passport bio page
PASSPORT_ARABIC_HEADER_WORDS = [
    "المملكة", "العربية", "المغربية", "السعودية", "وزارة", "الخارجية", "تأشيرة",
    "زيارة", "مرور", "جواز", "تاريخ", "الجنسية", "المهنة", "صاحب", "العمل",
    "الاسم", "الميلاد", "الإصدار", "الصلاحية", "رقم",
]
PASSPORT_HEADER_PATTERN = r"(?i)^(PASSPORT|PASSEPORT|KINGDOM|ROYAUME|MAROC|MOROCCO|MAR)"
PASSPORT_NAME_MIN_LENGTH = 5
PASSPORT_NAME_ARABIC_RATIO = 0.7


# ---------------------------------------------------------------------------
# Email synthesis
# ---------------------------------------------------------------------------

ARABIC_TO_LATIN = {
    "ا": "a", "أ": "a", "إ": "e", "آ": "a",
    "ب": "b", "ت": "t", "ث": "th",
    "ج": "j", "ح": "h", "خ": "kh",
    "د": "d", "ذ": "dh", "ر": "r", "ز": "z",
    "س": "s", "ش": "sh", "ص": "s", "ض": "d",
    "ط": "t", "ظ": "z", "ع": "a", "غ": "gh",
    "ف": "f", "ق": "q", "ك": "k", "ل": "l",
    "م": "m", "ن": "n", "ه": "h", "و": "w", "ي": "y", "ى": "a",
    "ة": "ah", "ء": "a", "ؤ": "u", "ئ": "e",
    "ﻻ": "la",  # lam-alef ligature
}

# "First Last" matches whose first word starts with one of these are labels
EMAIL_LABEL_DENYLIST = [
    "Name", "Passport", "Visa", "Birth", "Date", "Place", "Type", "Code", "Sex",
    "Nationality", "Saudi", "Digital", "Ministry", "Umrah", "Hajj", "Kingdom",
]
EMAIL_ENGLISH_NAME_PATTERN = r"([A-Z][a-z]+)\s+([A-Z][a-z]+)"
EMAIL_SURNAME_PREFIX_LENGTH = 3
