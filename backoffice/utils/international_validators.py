"""
International document and contact validators.

Validates customer/supplier documents (CPF, CNPJ, Chinese national id,
SSN, EIN, Aadhaar, PAN, GSTIN, EU VAT, passports), emails, phones and
postal codes per country.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

EU_COUNTRIES = ("DE", "FR", "IT", "ES", "GB")

CN_ID_WEIGHTS = [7, 9, 10, 5, 8, 4, 2, 1, 6, 3, 7, 9, 10, 5, 8, 4, 2]
CN_ID_CHECK_CHARS = "10X98765432"

EIN_VALID_PREFIXES = {
    "01", "02", "03", "04", "05", "06", "10", "11", "12", "13", "14", "15", "16",
    "20", "21", "22", "23", "24", "25", "26", "27", "30", "31", "32", "33", "34",
    "35", "36", "37", "38", "39", "40", "41", "42", "43", "44", "45", "46", "47",
    "48", "50", "51", "52", "53", "54", "55", "56", "57", "58", "59", "60", "61",
    "62", "63", "64", "65", "66", "67", "68", "71", "72", "73", "74", "75", "76",
    "77", "80", "81", "82", "83", "84", "85", "86", "87", "88", "90", "91", "92",
    "93", "94", "95", "98", "99",
}

VERHOEFF_D = [
    [0, 1, 2, 3, 4, 5, 6, 7, 8, 9],
    [1, 2, 3, 4, 0, 6, 7, 8, 9, 5],
    [2, 3, 4, 0, 1, 7, 8, 9, 5, 6],
    [3, 4, 0, 1, 2, 8, 9, 5, 6, 7],
    [4, 0, 1, 2, 3, 9, 5, 6, 7, 8],
    [5, 9, 8, 7, 6, 0, 4, 3, 2, 1],
    [6, 5, 9, 8, 7, 1, 0, 4, 3, 2],
    [7, 6, 5, 9, 8, 2, 1, 0, 4, 3],
    [8, 7, 6, 5, 9, 3, 2, 1, 0, 4],
    [9, 8, 7, 6, 5, 4, 3, 2, 1, 0],
]

VERHOEFF_P = [
    [0, 1, 2, 3, 4, 5, 6, 7, 8, 9],
    [1, 5, 7, 6, 2, 8, 3, 0, 9, 4],
    [5, 8, 0, 3, 7, 9, 6, 1, 4, 2],
    [8, 9, 1, 6, 0, 4, 3, 5, 2, 7],
    [9, 4, 5, 3, 1, 2, 6, 8, 7, 0],
    [4, 2, 8, 6, 5, 7, 3, 9, 0, 1],
    [2, 7, 9, 3, 8, 0, 6, 4, 1, 5],
    [7, 0, 4, 6, 9, 1, 3, 2, 5, 8],
]

EU_VAT_PATTERNS = {
    "DE": re.compile(r"^DE[0-9]{9}$"),
    "FR": re.compile(r"^FR[0-9A-Z]{2}[0-9]{9}$"),
    "IT": re.compile(r"^IT[0-9]{11}$"),
    "ES": re.compile(r"^ES[0-9A-Z][0-9]{7}[0-9A-Z]$"),
    "GB": re.compile(r"^GB([0-9]{9}([0-9]{3})?|[A-Z]{2}[0-9]{3})$"),
}

PASSPORT_PATTERN = re.compile(r"^[A-Z0-9]{6,9}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
E164_PATTERN = re.compile(r"^\+?[1-9]\d{6,14}$")

PHONE_PATTERNS = {
    "BR": re.compile(r"^\+?55[1-9]{2}\d{8,9}$"),
    "CN": re.compile(r"^\+?86[1-9]\d{9,10}$"),
    "US": re.compile(r"^\+?1[2-9]\d{9}$"),
    "IN": re.compile(r"^\+?91[6-9]\d{9}$"),
}

POSTAL_CODE_PATTERNS = {
    "BR": re.compile(r"^\d{5}-?\d{3}$"),
    "CN": re.compile(r"^\d{6}$"),
    "US": re.compile(r"^\d{5}(-\d{4})?$"),
    "CA": re.compile(r"^[A-Z]\d[A-Z] ?\d[A-Z]\d$"),
    "DE": re.compile(r"^\d{5}$"),
    "FR": re.compile(r"^\d{5}$"),
    "IT": re.compile(r"^\d{5}$"),
    "ES": re.compile(r"^\d{5}$"),
    "GB": re.compile(r"^[A-Z]{1,2}\d[A-Z\d]? ?\d[A-Z]{2}$", re.IGNORECASE),
    "IN": re.compile(r"^\d{6}$"),
    "JP": re.compile(r"^\d{3}-?\d{4}$"),
    "KR": re.compile(r"^\d{5}$"),
    "AU": re.compile(r"^\d{4}$"),
}
GENERIC_POSTAL_CODE_PATTERN = re.compile(r"^[A-Z0-9]{3,10}$", re.IGNORECASE)


@dataclass
class DocumentValidationResult:
    """Outcome of a document/contact validation."""

    is_valid: bool
    message: Optional[str] = None
    normalized_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "is_valid": self.is_valid,
            "message": self.message,
            "normalized_value": self.normalized_value,
        }


def clean_document(value: str) -> str:
    """Removes every non-word character (dots, dashes, slashes, spaces, plus signs)."""
    return re.sub(r"[^\w]", "", value or "")


def only_digits(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def _pattern_result(pattern: re.Pattern, value: str, error_message: str) -> DocumentValidationResult:
    normalized = value.upper()
    is_valid = bool(pattern.match(normalized))
    return DocumentValidationResult(
        is_valid=is_valid,
        message=None if is_valid else error_message,
        normalized_value=normalized,
    )


# === BRASIL ===


def validate_cpf(cpf: str) -> DocumentValidationResult:
    """
    Validates a Brazilian CPF (11 digits, two check digits).

    Args:
        cpf: CPF with or without punctuation

    Returns:
        DocumentValidationResult: normalized as ``000.000.000-00``
    """
    digits = only_digits(cpf)

    if len(digits) != 11 or len(set(digits)) == 1:
        return DocumentValidationResult(False, "Invalid CPF format")

    for position in (9, 10):
        total = sum(int(digits[i]) * (position + 1 - i) for i in range(position))
        check = (total * 10) % 11
        if check == 10:
            check = 0
        if check != int(digits[position]):
            return DocumentValidationResult(False, "Invalid CPF checksum")

    return DocumentValidationResult(True, normalized_value=f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}")


def validate_cnpj(cnpj: str) -> DocumentValidationResult:
    """
    Validates a Brazilian CNPJ (14 digits, two check digits).

    Args:
        cnpj: CNPJ with or without punctuation

    Returns:
        DocumentValidationResult: normalized as ``00.000.000/0000-00``
    """
    digits = only_digits(cnpj)

    if len(digits) != 14 or len(set(digits)) == 1:
        return DocumentValidationResult(False, "Invalid CNPJ format")

    weights_first = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    weights_second = [6] + weights_first

    for weights, position in ((weights_first, 12), (weights_second, 13)):
        remainder = sum(int(digits[i]) * weight for i, weight in enumerate(weights)) % 11
        check = 0 if remainder < 2 else 11 - remainder
        if check != int(digits[position]):
            return DocumentValidationResult(False, "Invalid CNPJ checksum")

    return DocumentValidationResult(
        True,
        normalized_value=f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}",
    )


def _validate_brazilian_document(document: str, document_type: Optional[str]) -> DocumentValidationResult:
    if document_type == "cpf" or (not document_type and len(document) == 11):
        return validate_cpf(document)
    if document_type == "cnpj" or (not document_type and len(document) == 14):
        return validate_cnpj(document)
    return DocumentValidationResult(False, "Invalid Brazilian document format")


# === CHINA ===

CN_NATIONAL_ID_PATTERN = re.compile(
    r"^[1-9]\d{5}(18|19|20)\d{2}(0[1-9]|1[0-2])(0[1-9]|[12]\d|3[01])\d{3}[\dX]$"
)
CN_PASSPORT_PATTERN = re.compile(r"^[EG]\d{8}$")
CN_BUSINESS_LICENSE_PATTERN = re.compile(r"^[0-9A-HJ-NPQRTUWXY]{2}\d{6}[0-9A-HJ-NPQRTUWXY]{10}$")


def validate_chinese_national_id(national_id: str) -> DocumentValidationResult:
    """
    Validates an 18-character Chinese resident identity number.

    The last character is a check character computed from the weighted sum
    of the first 17 digits modulo 11.
    """
    value = national_id.upper()

    if not CN_NATIONAL_ID_PATTERN.match(value):
        return DocumentValidationResult(False, "Invalid Chinese National ID format")

    total = sum(int(value[i]) * weight for i, weight in enumerate(CN_ID_WEIGHTS))
    if CN_ID_CHECK_CHARS[total % 11] != value[17]:
        return DocumentValidationResult(False, "Invalid Chinese National ID checksum")

    return DocumentValidationResult(True, normalized_value=value)


def _validate_chinese_document(document: str, document_type: Optional[str]) -> DocumentValidationResult:
    if document_type == "national_id" or (not document_type and len(document) == 18):
        return validate_chinese_national_id(document)
    if document_type == "passport":
        return _pattern_result(CN_PASSPORT_PATTERN, document, "Invalid Chinese passport format")
    if document_type == "business_license":
        return _pattern_result(CN_BUSINESS_LICENSE_PATTERN, document, "Invalid Chinese business license format")
    return DocumentValidationResult(False, "Invalid Chinese document format")


# === ESTADOS UNIDOS ===


def validate_ssn(ssn: str) -> DocumentValidationResult:
    """
    Validates a US Social Security Number.

    Rejects all-zero and sequential numbers, areas 000/666/9xx,
    group 00 and serial 0000.
    """
    digits = clean_document(ssn)

    if not re.match(r"^\d{9}$", digits):
        return DocumentValidationResult(False, "Invalid SSN format")

    area, group, serial = digits[:3], digits[3:5], digits[5:]
    if (
        digits in ("000000000", "123456789")
        or area in ("000", "666")
        or area.startswith("9")
        or group == "00"
        or serial == "0000"
    ):
        return DocumentValidationResult(False, "Invalid SSN pattern")

    return DocumentValidationResult(True, normalized_value=f"{area}-{group}-{serial}")


def validate_ein(ein: str) -> DocumentValidationResult:
    digits = clean_document(ein)

    if not re.match(r"^\d{9}$", digits):
        return DocumentValidationResult(False, "Invalid EIN format")

    if digits[:2] not in EIN_VALID_PREFIXES:
        return DocumentValidationResult(False, "Invalid EIN prefix")

    return DocumentValidationResult(True, normalized_value=f"{digits[:2]}-{digits[2:]}")


def _validate_us_document(document: str, document_type: Optional[str]) -> DocumentValidationResult:
    if document_type == "ssn":
        return validate_ssn(document)
    if document_type == "ein":
        return validate_ein(document)
    if document_type == "passport":
        return _pattern_result(PASSPORT_PATTERN, document, "Invalid US passport format")
    return DocumentValidationResult(False, "Invalid US document format")


# === ÍNDIA ===


def verhoeff_checksum(number: str) -> int:
    """Returns 0 when ``number`` carries a valid Verhoeff check digit."""
    checksum = 0
    for i, char in enumerate(reversed(number)):
        checksum = VERHOEFF_D[checksum][VERHOEFF_P[i % 8][int(char)]]
    return checksum


def validate_aadhaar(aadhaar: str) -> DocumentValidationResult:
    """
    Validates an Indian Aadhaar number (12 digits, first 2-9, Verhoeff checksum).

    Returns:
        DocumentValidationResult: normalized as ``NNNN NNNN NNNN``
    """
    digits = clean_document(aadhaar)

    if not re.match(r"^[2-9]\d{11}$", digits):
        return DocumentValidationResult(False, "Invalid Aadhaar format")

    is_valid = verhoeff_checksum(digits) == 0
    return DocumentValidationResult(
        is_valid,
        None if is_valid else "Invalid Aadhaar checksum",
        f"{digits[:4]} {digits[4:8]} {digits[8:]}",
    )


PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")


def _validate_indian_document(document: str, document_type: Optional[str]) -> DocumentValidationResult:
    if document_type == "aadhaar":
        return validate_aadhaar(document)
    if document_type == "pan":
        return _pattern_result(PAN_PATTERN, document, "Invalid PAN format")
    if document_type == "gstin":
        return _pattern_result(GSTIN_PATTERN, document, "Invalid GSTIN format")
    return DocumentValidationResult(False, "Invalid Indian document format")


# === EUROPA ===


def _validate_european_document(
    document: str, country: str, document_type: Optional[str]
) -> DocumentValidationResult:
    if document_type == "vat":
        pattern = EU_VAT_PATTERNS.get(country)
        if pattern is None:
            return DocumentValidationResult(False, "VAT validation not supported for this country")
        return _pattern_result(pattern, document, f"Invalid {country} VAT format")
    if document_type == "passport":
        return _pattern_result(PASSPORT_PATTERN, document, f"Invalid {country} passport format")
    return DocumentValidationResult(False, "Invalid European document format")


def _validate_generic_document(document: str, document_type: Optional[str]) -> DocumentValidationResult:
    if document_type == "passport":
        return _pattern_result(PASSPORT_PATTERN, document, "Invalid passport format")

    if 3 <= len(document) <= 20:
        return DocumentValidationResult(True, normalized_value=document)

    return DocumentValidationResult(False, "Document must be between 3 and 20 characters")


_COUNTRY_VALIDATORS: Dict[str, Callable[[str, Optional[str]], DocumentValidationResult]] = {
    "BR": _validate_brazilian_document,
    "CN": _validate_chinese_document,
    "US": _validate_us_document,
    "IN": _validate_indian_document,
}


def validate_document(
    document: str, country: str, document_type: Optional[str] = None
) -> DocumentValidationResult:
    """
    Validates a document according to the country's rules.

    Args:
        document: Raw document value (punctuation is stripped)
        country: ISO-2 country code
        document_type: cpf, cnpj, national_id, passport, business_license,
                       ssn, ein, aadhaar, pan, gstin, vat or any other type

    Returns:
        DocumentValidationResult: validity, error message and normalized value
    """
    if not document or not country:
        return DocumentValidationResult(False, "Document and country are required")

    cleaned = clean_document(document)
    country_code = country.upper()
    doc_type = document_type.lower() if document_type else None

    try:
        if country_code in EU_COUNTRIES:
            return _validate_european_document(cleaned, country_code, doc_type)

        validator = _COUNTRY_VALIDATORS.get(country_code, _validate_generic_document)
        return validator(cleaned, doc_type)

    except Exception as e:
        logger.error(f"❌ Error validating document for {country_code}/{doc_type}: {e}")
        return DocumentValidationResult(False, "Validation error occurred")


# === CONTACTO ===


def validate_email(email: str) -> DocumentValidationResult:
    value = (email or "").strip()
    is_valid = bool(EMAIL_PATTERN.match(value))
    return DocumentValidationResult(is_valid, None if is_valid else "Invalid email format", value.lower())


def validate_phone(phone: str, country: Optional[str] = None) -> DocumentValidationResult:
    """
    Validates an international phone number (E.164) and, when given,
    the country-specific pattern for BR, CN, US and IN.

    Returns:
        DocumentValidationResult: normalized with a leading ``+``
    """
    cleaned = clean_document(phone)

    if not E164_PATTERN.match(cleaned):
        return DocumentValidationResult(False, "Invalid international phone format")

    if country:
        pattern = PHONE_PATTERNS.get(country.upper())
        if pattern and not pattern.match(cleaned):
            return DocumentValidationResult(False, f"Invalid {country.upper()} phone format")

    return DocumentValidationResult(True, normalized_value=cleaned if cleaned.startswith("+") else f"+{cleaned}")


def validate_postal_code(code: str, country: str) -> DocumentValidationResult:
    """
    Validates a postal code with the country's pattern.
    Unknown countries accept 3 to 10 alphanumeric characters.
    """
    value = (code or "").strip().upper()
    country_code = (country or "").upper()

    pattern = POSTAL_CODE_PATTERNS.get(country_code)
    if pattern is None:
        compact = value.replace(" ", "").replace("-", "")
        is_valid = bool(GENERIC_POSTAL_CODE_PATTERN.match(compact))
        return DocumentValidationResult(is_valid, None if is_valid else "Invalid postal code format", value)

    return _pattern_result(pattern, value, f"Invalid {country_code} postal code format")
