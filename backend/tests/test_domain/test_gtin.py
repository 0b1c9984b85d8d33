"""
Unit tests for the GTIN/EAN check digit engine

Author: TM3
Date: 2026-03-02
"""
import random

import pytest

from pim.domain.gtin import (
    classify,
    compute_check_digit,
    digits_only,
    is_valid,
    to_gtin14,
    validate,
)


class TestComputeCheckDigit:
    """Test compute_check_digit"""

    def test_ean13_body(self):
        assert compute_check_digit("789123456789") == 5

    def test_accepts_int_sequence(self):
        assert compute_check_digit([7, 8, 9, 1, 2, 3, 4, 5, 6, 7, 8, 9]) == 5

    def test_ean8_body(self):
        assert compute_check_digit("9638507") == 4

    def test_upca_body(self):
        assert compute_check_digit("03600029145") == 2

    def test_sum_multiple_of_ten_gives_zero(self):
        # 1*3 + 7*1 = 10
        assert compute_check_digit("71") == 0


class TestValidate:
    """Test validate"""

    @pytest.mark.parametrize("code", [
        "96385074",          # EAN-8
        "036000291452",      # UPC-A
        "7891234567895",     # EAN-13
        "17891234567892",    # GTIN-14
    ])
    def test_valid_identifiers(self, code):
        result = validate(code)
        assert result.valid is True
        assert result.reason == "ok"
        assert result.expected == result.got

    def test_wrong_check_digit_reports_expected_and_got(self):
        result = validate("7891234567890")

        assert result.valid is False
        assert result.reason == "checkdigit"
        assert result.expected == 5
        assert result.got == 0
        assert result.length == 13

    def test_separators_are_ignored(self):
        assert validate("789-1234 567.895").valid is True

    @pytest.mark.parametrize("code,length", [
        ("", 0),
        ("1234567", 7),
        ("12345678901", 11),
        ("123456789012345", 15),
        ("abc", 0),
    ])
    def test_bad_length(self, code, length):
        result = validate(code)
        assert result.valid is False
        assert result.reason == "length"
        assert result.length == length
        assert result.expected is None
        assert result.got is None

    def test_none_never_raises(self):
        assert validate(None).reason == "length"

    def test_leading_zero_padding_keeps_validity(self):
        assert validate("07891234567895").valid is True

    def test_is_valid_shortcut(self):
        assert is_valid("7891234567895") is True
        assert is_valid("7891234567890") is False


class TestHelpers:
    """Test digits_only, classify and to_gtin14"""

    def test_digits_only_keeps_leading_zeros(self):
        assert digits_only(" 0036-000 ") == "0036000"

    def test_classify(self):
        assert classify("96385074") == "EAN_8"
        assert classify("036000291452") == "UPC_A"
        assert classify("7891234567895") == "EAN_13"
        assert classify("17891234567892") == "GTIN_14"
        assert classify("123") == "unknown"

    def test_to_gtin14_pads_left(self):
        assert to_gtin14("7891234567895") == "07891234567895"
        assert to_gtin14("96385074") == "00000096385074"


class TestChecksumProperties:
    """Properties that hold for any body, checked over seeded random digits"""

    @pytest.mark.parametrize("body_length", [7, 11, 12, 13])
    def test_appended_check_digit_validates(self, body_length):
        rng = random.Random(body_length)
        for _ in range(50):
            body = "".join(str(rng.randint(0, 9)) for _ in range(body_length))

            result = validate(body + str(compute_check_digit(body)))

            assert result.valid is True, body
            assert result.reason == "ok"

    @pytest.mark.parametrize("code", ["96385074", "036000291452", "7891234567895", "17891234567892"])
    def test_every_other_last_digit_is_rejected(self, code):
        check = int(code[-1])
        for digit in range(10):
            if digit == check:
                continue

            result = validate(code[:-1] + str(digit))

            assert result.valid is False
            assert result.reason == "checkdigit"
            assert result.expected == check
            assert result.got == digit

    def test_separators_do_not_change_the_result(self):
        assert validate("789-1234-567890") == validate("7891234567890")
        assert validate("789 1234.567895") == validate("7891234567895")
