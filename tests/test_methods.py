"""Tests for tern.routing.methods — verb bitset encoding."""

import pytest

from tern.errors import ConfigurationError
from tern.routing.methods import VERBS, Method, decode, encode, parse_methods


class TestMethodBits:
    def test_bits_are_distinct_powers_of_two(self) -> None:
        values = [int(verb) for verb in VERBS]
        assert values == [1, 2, 4, 8, 16, 32, 64]

    def test_all_covers_every_verb(self) -> None:
        assert int(Method.ALL) == 127

    def test_combination(self) -> None:
        assert Method.GET | Method.POST == 3


class TestDecode:
    def test_single(self) -> None:
        assert decode(Method.PATCH) == ("PATCH",)

    def test_universe_order_not_argument_order(self) -> None:
        assert decode(Method.HEAD | Method.GET | Method.DELETE) == ("GET", "DELETE", "HEAD")

    def test_all(self) -> None:
        assert decode(Method.ALL) == ("GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "HEAD")

    def test_zero(self) -> None:
        assert decode(0) == ()

    def test_unknown_bits_ignored(self) -> None:
        assert decode(128 | 256) == ()
        assert decode(128 | Method.PUT) == ("PUT",)


class TestEncode:
    @pytest.mark.parametrize("bits", range(128))
    def test_lossless_for_valid_bits(self, bits: int) -> None:
        assert encode(decode(bits)) == bits

    def test_case_insensitive(self) -> None:
        assert encode(["get", "Post"]) == 3

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="FETCH"):
            encode(["GET", "FETCH"])


class TestParseMethods:
    def test_bitset(self) -> None:
        assert parse_methods(Method.GET | Method.PUT) == ("GET", "PUT")

    def test_plain_int(self) -> None:
        assert parse_methods(2) == ("POST",)

    def test_single_name(self) -> None:
        assert parse_methods("delete") == ("DELETE",)

    def test_iterable_of_names_uses_universe_order(self) -> None:
        assert parse_methods(["HEAD", "GET"]) == ("GET", "HEAD")

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown HTTP method"):
            parse_methods("BREW")

    def test_bool_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_methods(True)

    def test_non_string_items_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_methods([1, 2])  # type: ignore[list-item]

    def test_unsupported_type_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_methods(1.5)  # type: ignore[arg-type]
