"""Tests for value coercion."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import uuid4

import pytest

from rowbind_kernel.exceptions import ConversionError
from rowbind_kernel.mapping.coercion import ConversionSettings, coerce_value
from tests.support.models import Status

EUROPEAN = ConversionSettings(decimal_separator=",", group_separator=".")


class TestNumbers:
    def test_text_to_int(self):
        assert coerce_value("34567", int) == 34567
        assert coerce_value(" -12 ", int) == -12

    def test_group_separator_ignored(self):
        assert coerce_value("1,234", int) == 1234

    def test_fractional_text_to_int_fails(self):
        with pytest.raises(ConversionError):
            coerce_value("12.5", int)

    def test_fractional_number_to_int_rounds_half_even(self):
        assert coerce_value(2.5, int) == 2
        assert coerce_value(3.5, int) == 4
        assert coerce_value(Decimal("23.7"), int) == 24

    def test_bool_to_int(self):
        assert coerce_value(True, int) == 1

    def test_text_to_decimal(self):
        assert coerce_value("23.3", Decimal) == Decimal("23.3")

    def test_float_to_decimal_keeps_short_repr(self):
        assert coerce_value(23.3, Decimal) == Decimal("23.3")

    def test_int_to_decimal(self):
        assert coerce_value(10, Decimal) == Decimal(10)

    def test_text_to_float(self):
        assert coerce_value("1.25", float) == 1.25

    def test_non_numeric_text_fails(self):
        with pytest.raises(ConversionError) as exc_info:
            coerce_value("abc", int, field_name="zip")
        err = exc_info.value
        assert err.code == "CONVERSION_ERROR"
        assert err.value == "abc"
        assert err.target_type == "int"
        assert err.field_name == "zip"

    def test_nan_text_to_decimal_fails(self):
        with pytest.raises(ConversionError):
            coerce_value("NaN", Decimal)


class TestCultureSettings:
    def test_decimal_comma(self):
        assert coerce_value("1.234,5", Decimal, EUROPEAN) == Decimal("1234.5")
        assert coerce_value("0,75", float, EUROPEAN) == 0.75

    def test_invariant_reads_comma_as_group(self):
        assert coerce_value("0,75", Decimal) == Decimal("075")

    def test_number_to_text_uses_decimal_separator(self):
        assert coerce_value(Decimal("23.3"), str, EUROPEAN) == "23,3"
        assert coerce_value(Decimal("23.3"), str) == "23.3"

    def test_separators_must_differ(self):
        with pytest.raises(ValueError):
            ConversionSettings(decimal_separator=",", group_separator=",")

    def test_invariant_is_default(self):
        assert ConversionSettings.invariant() == ConversionSettings()

    def test_from_locale_produces_distinct_separators(self):
        settings = ConversionSettings.from_locale()
        assert settings.decimal_separator
        assert settings.decimal_separator != settings.group_separator


class TestBooleans:
    @pytest.mark.parametrize("text", ["true", "TRUE", "yes", "1", "on"])
    def test_true_tokens(self, text):
        assert coerce_value(text, bool) is True

    @pytest.mark.parametrize("text", ["false", "No", "0", "off"])
    def test_false_tokens(self, text):
        assert coerce_value(text, bool) is False

    def test_numbers(self):
        assert coerce_value(0, bool) is False
        assert coerce_value(Decimal("2"), bool) is True

    def test_custom_tokens(self):
        settings = ConversionSettings(true_values=("ja",), false_values=("nein",))
        assert coerce_value("Ja", bool, settings) is True
        with pytest.raises(ConversionError):
            coerce_value("yes", bool, settings)

    def test_unknown_token_fails(self):
        with pytest.raises(ConversionError):
            coerce_value("maybe", bool)


class TestText:
    def test_str_passthrough_keeps_whitespace(self):
        assert coerce_value("  x ", str) == "  x "

    def test_int_to_str(self):
        assert coerce_value(42, str) == "42"

    def test_date_to_str(self):
        assert coerce_value(date(2026, 2, 1), str) == "2026-02-01"

    def test_bytes_to_str_fails(self):
        with pytest.raises(ConversionError):
            coerce_value(b"abc", str)


class TestTemporal:
    def test_iso_date(self):
        assert coerce_value("2026-02-01", date) == date(2026, 2, 1)

    def test_date_formats(self):
        assert coerce_value("02/01/2026", date) == date(2026, 2, 1)
        settings = ConversionSettings(date_formats=("%d.%m.%Y",))
        assert coerce_value("01.02.2026", date, settings) == date(2026, 2, 1)

    def test_datetime_to_date(self):
        assert coerce_value(datetime(2026, 2, 1, 13, 5), date) == date(2026, 2, 1)

    def test_date_to_datetime(self):
        assert coerce_value(date(2026, 2, 1), datetime) == datetime(2026, 2, 1)

    def test_iso_datetime_with_z(self):
        value = coerce_value("2026-02-01T10:00:00Z", datetime)
        assert value.year == 2026 and value.hour == 10
        assert value.utcoffset() is not None

    def test_time(self):
        assert coerce_value("13:05:00", time) == time(13, 5)

    def test_bad_date_fails(self):
        with pytest.raises(ConversionError):
            coerce_value("not a date", date)


class TestOtherTypes:
    def test_uuid(self):
        u = uuid4()
        assert coerce_value(str(u), type(u)) == u
        assert coerce_value(u.bytes, type(u)) == u

    def test_bytes(self):
        assert coerce_value(bytearray(b"ab"), bytes) == b"ab"

    def test_enum_by_value_and_name(self):
        assert coerce_value("A", Status) is Status.ACTIVE
        assert coerce_value("closed", Status) is Status.CLOSED

    def test_enum_unknown_fails(self):
        with pytest.raises(ConversionError):
            coerce_value("Z", Status)

    def test_any_passes_through(self):
        marker = object()
        assert coerce_value(marker, Any) is marker
        assert coerce_value(marker, object) is marker

    def test_instance_of_target_passes_through(self):
        class Box:
            pass

        box = Box()
        assert coerce_value(box, Box) is box

    def test_other_types_called_with_value(self):
        from pathlib import PurePosixPath

        assert coerce_value("/tmp/x", PurePosixPath) == PurePosixPath("/tmp/x")


class TestOptional:
    def test_optional_unwrapped(self):
        assert coerce_value("23.3", Decimal | None) == Decimal("23.3")

    def test_none_for_optional_is_none(self):
        assert coerce_value(None, int | None) is None

    def test_none_for_required_fails(self):
        with pytest.raises(ConversionError):
            coerce_value(None, int)


class TestNonFiniteAndOddNumerals:
    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_float_to_decimal_fails(self, raw):
        with pytest.raises(ConversionError):
            coerce_value(raw, Decimal)

    @pytest.mark.parametrize("raw", [Decimal("NaN"), Decimal("Infinity"), Decimal("sNaN")])
    def test_non_finite_decimal_fails(self, raw):
        with pytest.raises(ConversionError):
            coerce_value(raw, Decimal)
        with pytest.raises(ConversionError):
            coerce_value(raw, int)

    @pytest.mark.parametrize("target", [int, float, Decimal])
    @pytest.mark.parametrize("text", ["1_000", "١٢", "１２", "nan", "inf", "0x10"])
    def test_non_ascii_or_python_only_numerals_fail(self, text, target):
        with pytest.raises(ConversionError):
            coerce_value(text, target)

    def test_exponent_text_accepted(self):
        assert coerce_value("1e3", float) == 1000.0
        assert coerce_value("2.5E-1", Decimal) == Decimal("0.25")
        assert coerce_value(".5", float) == 0.5
