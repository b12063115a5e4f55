"""Shared fixtures for extraction service tests."""
import os
import tempfile

import cv2
import numpy as np
import pytest

# Set test environment variables before importing app modules
_test_dir = tempfile.mkdtemp(prefix="paperwork-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_test_dir, 'clients.db')}")
os.environ.setdefault("LOG_LEVEL", "WARNING")

MRZ_LINE1 = "P<MARDOE<<JOHN" + "<" * 30
MRZ_LINE2 = "AB12345671MAR8501019M3001019" + "<" * 14 + "02"


@pytest.fixture
def mrz_lines():
    """Valid TD3 MRZ lines (44 characters each, correct check digits)."""
    return MRZ_LINE1, MRZ_LINE2


@pytest.fixture
def visa_text():
    """Recognized text of an Umrah visa."""
    return (
        "Umrah Visa\n"
        "Visa No: 6012345678\n"
        "Name: محمد الغزالي\n"
        "Birth Date: 15/03/1980\n"
        "رقم جواز السفر: AB1234567\n"
        "Nationality: MOROCCO"
    )


@pytest.fixture
def passport_text():
    """Recognized text of a Moroccan passport bio page with MRZ."""
    return (
        "ROYAUME DU MAROC\n"
        "PASSEPORT\n"
        "محمد الغزالي\n"
        f"{MRZ_LINE1}\n"
        f"{MRZ_LINE2}"
    )


@pytest.fixture
def make_image_bytes():
    """Factory for PNG-encoded solid images."""
    def _make(width, height, color=(200, 180, 160)):
        image = np.full((height, width, 3), color, dtype=np.uint8)
        ok, buffer = cv2.imencode(".png", image)
        assert ok
        return buffer.tobytes()
    return _make
