"""
MRZ (Machine Readable Zone) Parser for passport bio pages.

Every TD3 passport carries two 44-character lines at the bottom of the bio page.
Example:
P<MARDOE<<JOHN<<<<<<<<<<<<<<<<<<<<<<<<<<<<<<
AB12345671MAR8501019M3001019<<<<<<<<<<<<<<02

Fields are decoded at fixed character offsets. Check digits are verified
but never used to alter the decoded values.
"""
import re
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class MRZData:
    passport_number: str = ""
    date_of_birth: str = ""
    expiry_date: str = ""
    nationality: str = ""
    sex: str = ""
    last_name: str = ""
    first_name: str = ""
    check_digits_valid: bool = False


class MRZParser:
    """
    Fixed-offset TD3 MRZ parser
    - Line 1: P<CCC + SURNAME<<GIVEN<NAMES
    - Line 2: passport#, nationality, birth date, sex, expiry
    - Dates converted from YYMMDD to DD/MM/YYYY
    """

    MIN_LINE_LENGTH = 40
    LINE1_PREFIX_LENGTH = 5  # "P<" + 3-letter issuing state

    LINE1_PATTERN = re.compile(r'^P<[A-Z]{3}')
    # OCR sometimes misses line 1's "P<" - recognize line 2 on its own
    LINE2_PATTERN = re.compile(r'^[A-Z]{9,}[A-Z]{3}[0-9]{7}')

    CHECK_WEIGHTS = (7, 3, 1)

    def parse_mrz(self, text: str) -> Optional[MRZData]:
        """
        Parse MRZ from OCR text.
        Returns None when the two MRZ lines cannot be located.
        """
        mrz_line1, mrz_line2 = self._find_mrz_lines(text or '')

        if not mrz_line1 or not mrz_line2:
            logger.info("MRZ lines not found in text")
            return None

        logger.debug(f"MRZ Line 1: {mrz_line1}")
        logger.debug(f"MRZ Line 2: {mrz_line2}")

        last_name, first_name = self._parse_mrz_line1(mrz_line1)
        data = self._parse_mrz_line2(mrz_line2)
        data.last_name = last_name
        data.first_name = first_name

        if not data.check_digits_valid:
            logger.warning("MRZ check digits do not match, OCR may have misread line 2")

        return data

    def _find_mrz_lines(self, text: str) -> Tuple[str, str]:
        """Find MRZ Line 1 and Line 2"""
        lines = [re.sub(r'\s', '', line.strip()) for line in text.split('\n')]

        for i, line in enumerate(lines):
            if self.LINE1_PATTERN.match(line) and len(line) >= self.MIN_LINE_LENGTH:
                mrz_line2 = lines[i + 1] if i + 1 < len(lines) else ''
                return line, mrz_line2

            if self.LINE2_PATTERN.match(line) and len(line) >= self.MIN_LINE_LENGTH:
                mrz_line1 = lines[i - 1] if i > 0 else ''
                return mrz_line1, line

        return '', ''

    def _parse_mrz_line1(self, line1: str) -> Tuple[str, str]:
        """Parse MRZ Line 1 - (last name, first name)"""
        name_parts = line1[self.LINE1_PREFIX_LENGTH:].split('<<')

        last_name = name_parts[0].replace('<', ' ').strip() if name_parts else ''
        first_name = name_parts[1].replace('<', ' ').strip() if len(name_parts) > 1 else ''

        return last_name, first_name

    def _parse_mrz_line2(self, line2: str) -> MRZData:
        """
        Parse MRZ Line 2
        Format: [Passport#9][Check1][Country3][DOB6][Check1][Sex1][Expiry6][Check1]...
        """
        dob_raw = line2[13:19]
        expiry_raw = line2[21:27]

        return MRZData(
            passport_number=line2[0:9].replace('<', '').strip(),
            nationality=line2[10:13],
            date_of_birth=self._format_date(dob_raw),
            sex=line2[20:21],
            expiry_date=self._format_date(expiry_raw),
            check_digits_valid=self._verify_check_digits(line2),
        )

    def _format_date(self, yymmdd: str) -> str:
        """
        Convert YYMMDD to DD/MM/YYYY
        Example: 850101 -> 01/01/1985, 300101 -> 01/01/2030
        """
        if not re.fullmatch(r'[0-9]{6}', yymmdd):
            return ''

        yy = int(yymmdd[0:2])
        mm = yymmdd[2:4]
        dd = yymmdd[4:6]

        # 1900s only above 50
        year = 1900 + yy if yy > 50 else 2000 + yy

        return f"{dd}/{mm}/{year}"

    def _check_digit(self, field: str) -> str:
        """ICAO 9303 check digit: weights 7,3,1 over digit/letter values, '<' counts as 0"""
        total = 0
        for i, char in enumerate(field):
            if '0' <= char <= '9':
                value = int(char)
            elif 'A' <= char <= 'Z':
                value = ord(char) - ord('A') + 10
            else:
                value = 0
            total += value * self.CHECK_WEIGHTS[i % 3]
        return str(total % 10)

    def _verify_check_digits(self, line2: str) -> bool:
        """Verify passport number, birth date and expiry check digits"""
        if len(line2) < 28:
            return False

        checks = [
            (line2[0:9], line2[9]),
            (line2[13:19], line2[19]),
            (line2[21:27], line2[27]),
        ]
        return all(self._check_digit(field) == digit for field, digit in checks)
