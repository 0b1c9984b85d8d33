"""
GTIN / EAN Check Digit Engine

Pure functions for computing and validating the GS1 check digit of
EAN-8, UPC-A, EAN-13 and GTIN-14 identifiers.

GS1 rule: walking the body (every digit except the check digit) from right
to left, the rightmost digit gets weight 3, the next weight 1, and so on.
check = (10 - (sum mod 10)) mod 10

Author: TM3
Date: 2026-03-02
"""
import re
from typing import Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field


VALID_LENGTHS = (8, 12, 13, 14)

# Symbology by digit count
SYMBOLOGIES = {
    8: "EAN_8",
    12: "UPC_A",
    13: "EAN_13",
    14: "GTIN_14",
}

_NON_DIGIT = re.compile(r"\D")


class ChecksumResult(BaseModel):
    """
    Outcome of a check digit validation.

    Fields:
        valid: True only when length is accepted and check digit matches
        reason: ok | length | checkdigit
        expected: Computed check digit (None when reason is 'length')
        got: Check digit supplied in the input (None when reason is 'length')
        length: Digit count after stripping non-digits
    """

    valid: bool
    reason: Literal["ok", "length", "checkdigit"]
    expected: Optional[int] = Field(None, ge=0, le=9)
    got: Optional[int] = Field(None, ge=0, le=9)
    length: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)


def digits_only(value: Optional[str]) -> str:
    """Strip every non-digit character, keeping leading zeros."""
    if not value:
        return ""
    return _NON_DIGIT.sub("", str(value))


def compute_check_digit(body: Union[str, Sequence[int]]) -> int:
    """
    Compute the GS1 check digit for a body (identifier without check digit)

    Args:
        body: Digit string or sequence of ints, e.g. "789123456789"

    Returns:
        Check digit 0-9
    """
    digits = [int(d) for d in body]
    total = 0
    for position, digit in enumerate(reversed(digits)):
        weight = 3 if position % 2 == 0 else 1
        total += digit * weight
    return (10 - (total % 10)) % 10


def validate(identifier: Optional[str]) -> ChecksumResult:
    """
    Validate an identifier's length and check digit

    Non-digit characters (spaces, hyphens, dots) are ignored. Never raises.

    Args:
        identifier: Raw identifier as typed or scanned

    Returns:
        ChecksumResult
    """
    digits = digits_only(identifier)
    length = len(digits)

    if length not in VALID_LENGTHS:
        return ChecksumResult(valid=False, reason="length", length=length)

    body, check = digits[:-1], int(digits[-1])
    expected = compute_check_digit(body)
    valid = check == expected

    return ChecksumResult(
        valid=valid,
        reason="ok" if valid else "checkdigit",
        expected=expected,
        got=check,
        length=length,
    )


def is_valid(identifier: Optional[str]) -> bool:
    """Shortcut for validate(identifier).valid"""
    return validate(identifier).valid


def classify(identifier: Optional[str]) -> str:
    """Symbology name by digit count (EAN_8, UPC_A, EAN_13, GTIN_14 or unknown)"""
    return SYMBOLOGIES.get(len(digits_only(identifier)), "unknown")


def to_gtin14(identifier: Optional[str]) -> str:
    """
    Left-pad the identifier's digits to 14 positions.

    The registry keys every product by GTIN-14. Zero padding on the left
    does not change the check digit.
    """
    return digits_only(identifier).zfill(14)
