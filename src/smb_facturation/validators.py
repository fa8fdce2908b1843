# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Validation of French business identifiers.

Every validator is a total predicate: malformed input (wrong length,
unexpected characters, empty string) returns False and never raises.

- SIRET (14 digits) is checked with the Luhn algorithm.
- The intracommunity VAT number is checked for its format only
  ("FR" + 2 alphanumeric key characters + 9-digit SIREN). The key is not
  recomputed from the SIREN.
- IBAN is checked with the ISO 13616 modulo-97 rule.
- VAT rates are checked against an allowed set (French rates by default).
"""

import logging
import math
import re
from collections.abc import Iterable
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

SIRET_LENGTH = 14
IBAN_MIN_LENGTH = 15

VAT_NUMBER_RE = re.compile(r"^FR[0-9A-Z]{2}[0-9]{9}$")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"[^0-9]")

# Taux de TVA applicables en France métropolitaine et DOM.
DEFAULT_TAX_RATES: frozenset[float] = frozenset({0.0, 2.1, 5.5, 10.0, 20.0})


def _compact(text: str) -> str:
    """Uppercase and drop every whitespace character."""
    return _WHITESPACE_RE.sub("", text.upper())


def is_valid_tax_id(text: str) -> bool:
    """
    Validate a SIRET number.

    Non-digit characters (spaces, dots...) are ignored. The remaining digits
    must be exactly 14 and pass the Luhn checksum, computed from the rightmost
    digit: digits at odd positions are doubled (minus 9 above 9).
    """
    digits = _NON_DIGIT_RE.sub("", text)
    if len(digits) != SIRET_LENGTH:
        logger.debug("SIRET validation failed: %d digits", len(digits))
        return False

    total = 0
    for index, char in enumerate(reversed(digits)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit

    is_valid = total % 10 == 0
    logger.debug("SIRET validation completed: valid=%s", is_valid)
    return is_valid


def is_valid_vat_number(text: str) -> bool:
    """
    Validate the format of a French intracommunity VAT number.

    Whitespace is ignored and letters are uppercased before matching
    FR + [0-9A-Z]{2} + [0-9]{9}. The two-character key is not verified.
    """
    is_valid = VAT_NUMBER_RE.match(_compact(text)) is not None
    logger.debug("VAT number validation completed: valid=%s", is_valid)
    return is_valid


def is_valid_iban(text: str) -> bool:
    """
    Validate an IBAN with the modulo-97 checksum.

    Steps:
      1. uppercase and drop whitespace; at least 15 characters are required,
      2. move the first 4 characters (country code + check digits) to the end,
      3. replace letters by numbers (A=10, ..., Z=35),
      4. the resulting number modulo 97 must equal 1.

    The remainder is computed digit by digit, so arbitrarily long IBANs
    never build a large integer.
    """
    iban = _compact(text)
    if len(iban) < IBAN_MIN_LENGTH:
        logger.debug("IBAN validation failed: too short (%d)", len(iban))
        return False

    rearranged = iban[4:] + iban[:4]

    remainder = 0
    for char in rearranged:
        if "A" <= char <= "Z":
            chunk = str(ord(char) - ord("A") + 10)
        elif "0" <= char <= "9":
            chunk = char
        else:
            logger.debug("IBAN validation failed: invalid character %r", char)
            return False
        for digit in chunk:
            remainder = (remainder * 10 + int(digit)) % 97

    is_valid = remainder == 1
    logger.debug("IBAN validation completed: valid=%s", is_valid)
    return is_valid


def _round_one_decimal(rate: float) -> float:
    """Round to one decimal, halves away from zero (19.95 -> 20.0)."""
    scaled = rate * 10
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / 10


def is_valid_tax_rate(
    rate: float,
    allowed_rates: Optional[Iterable[float]] = None,
) -> bool:
    """
    Return True if `rate` (in percent) is one of the allowed VAT rates.

    The rate is rounded to one decimal first, halves away from zero, so
    5.50000001 matches 5.5 and 2.05 matches 2.1. NaN and infinities are
    invalid.

    Args:
        rate: VAT rate in percent.
        allowed_rates: Allowed set; defaults to DEFAULT_TAX_RATES.
    """
    if not math.isfinite(rate):
        logger.debug("Tax rate validation failed: non-finite rate %r", rate)
        return False

    allowed = DEFAULT_TAX_RATES if allowed_rates is None else set(allowed_rates)
    is_valid = _round_one_decimal(rate) in allowed
    logger.debug("Tax rate validation completed: rate=%s valid=%s", rate, is_valid)
    return is_valid


class CompanyIdentifiers(Protocol):
    """Identifiers checked by `validate_company` (e.g. config.CompanyConfig)."""

    siret: str
    vat_number: str
    iban: str
    default_tax_rate: float


def validate_company(
    company: CompanyIdentifiers,
    allowed_rates: Optional[Iterable[float]] = None,
) -> list[str]:
    """
    Check the identifiers of the issuing company.

    Empty identifiers are reported as missing rather than invalid.

    Returns:
        A list of human-readable problems. An empty list means every
        identifier is present and valid.
    """
    problems: list[str] = []

    checks = (
        ("SIRET", company.siret, is_valid_tax_id),
        ("VAT number", company.vat_number, is_valid_vat_number),
        ("IBAN", company.iban, is_valid_iban),
    )
    for label, value, predicate in checks:
        if not value.strip():
            problems.append(f"{label} is missing.")
        elif not predicate(value):
            problems.append(f"{label} {value!r} is invalid.")

    if not is_valid_tax_rate(company.default_tax_rate, allowed_rates):
        problems.append(
            f"Default tax rate {company.default_tax_rate} is not an allowed rate."
        )

    return problems
