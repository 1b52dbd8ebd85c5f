# ABOUTME: Contract tests for the key-anchored payload scanner.
# ABOUTME: Covers key lookup, brace matching, number/string extraction and the known nested-key limitation.

import pytest

from weatherclock import scanner


class TestFindKey:
    def test_finds_first_occurrence_from_offset(self):
        """find_key returns the first match at or after the start offset.

        Implementation: Searches a payload containing the same key twice, from 0 and past the first.
        Passing implies: Section-anchored scans skip earlier duplicates.
        """
        text = b'{"temp":1,"x":{"temp":2}}'
        first = scanner.find_key(text, b'"temp":')
        assert first == 1
        assert scanner.find_key(text, b'"temp":', first + 1) == text.rindex(b'"temp":')

    def test_missing_key_and_bad_start_return_none(self):
        assert scanner.find_key(b'{"a":1}', b'"b":') is None
        assert scanner.find_key(b'{"a":1}', b'"a":', -1) is None
        assert scanner.find_key(b'{"a":1}', b"") is None


class TestMatching:
    def test_matching_brace_skips_nested_objects(self):
        """matching_brace returns the brace that brings depth back to zero.

        Implementation: Uses an object with a nested object and array.
        Passing implies: Entry boundaries in hourly/daily arrays are found correctly.
        """
        text = b'{"a":{"b":[{"c":1}]},"d":2} tail'
        assert scanner.matching_brace(text, 0) == text.index(b"} tail")

    def test_matching_bracket_skips_nested_arrays(self):
        text = b'"daily":[[1,2],[3]],"x":1'
        open_pos = text.index(b"[")
        assert scanner.matching_bracket(text, open_pos) == text.index(b',"x"') - 1

    def test_not_an_opener_or_unclosed_returns_none(self):
        assert scanner.matching_brace(b'{"a":1', 0) is None
        assert scanner.matching_brace(b'x{"a":1}', 0) is None
        assert scanner.matching_brace(b"{}", 5) is None
        assert scanner.matching_brace(b"{}", None) is None
        assert scanner.matching_bracket(b"[[1]", 0) is None


class TestNumberAfter:
    def test_parses_number_and_end_offset(self):
        text = b'{"temp":72.4,"x":1}'
        value, end = scanner.number_after(text, b'"temp":')
        assert value == 72.4
        assert text[end : end + 1] == b","

    def test_skips_whitespace_after_key(self):
        assert scanner.number_after(b'"lat": \n\t-33.86,', b'"lat":')[0] == -33.86

    def test_signed_values(self):
        assert scanner.number_after(b'"tz":-18000}', b'"tz":')[0] == -18000.0
        assert scanner.number_after(b'"tz":+3600}', b'"tz":')[0] == 3600.0

    def test_non_numeric_value_is_missing(self):
        """A key followed by a non-numeric value does not parse.

        Implementation: Key is followed by a quoted string and by null.
        Passing implies: Optional fields fall back to their defaults instead of reading garbage.
        """
        assert scanner.number_after(b'"temp":"hot"', b'"temp":') is None
        assert scanner.number_after(b'"temp":null', b'"temp":') is None
        assert scanner.number_after(b'"temp":', b'"temp":') is None

    def test_malformed_run_reads_numeric_prefix(self):
        assert scanner.number_after(b'"v":1.2.3,', b'"v":')[0] == 1.2
        assert scanner.number_after(b'"v":--,', b'"v":')[0] == 0.0

    def test_int_after_truncates_toward_zero(self):
        assert scanner.int_after(b'"id":800.9', b'"id":')[0] == 800
        assert scanner.int_after(b'"d":-7.8', b'"d":')[0] == -7


class TestFieldNumber:
    def test_tolerates_spaces_around_colon(self):
        assert scanner.field_number(b'{"max" : 55.6, "min":40}', b'"max"') == 55.6
        assert scanner.field_number(b'{"max":55.6,"min" :40}', b'"min"') == 40.0

    def test_missing_field(self):
        assert scanner.field_number(b'{"day":50}', b'"max"') is None


class TestStringAfter:
    def test_reads_up_to_next_quote(self):
        text = b'{"name":"New York","country":"US"}'
        value, end = scanner.string_after(text, b'"name":"')
        assert value == "New York"
        assert text[end : end + 1] == b'"'

    def test_truncates_to_capacity(self):
        value, _ = scanner.string_after(b'"main":"Thunderstorm"', b'"main":"', capacity=11)
        assert value == "Thunderstor"

    def test_empty_value_is_missing(self):
        assert scanner.string_after(b'"name":"",', b'"name":"') is None

    def test_unterminated_value_runs_to_end(self):
        assert scanner.string_after(b'"name":"Spring', b'"name":"')[0] == "Spring"


class TestObjectsIn:
    def test_yields_top_level_object_spans(self):
        text = b'[{"a":{"b":1}},{"c":2},{"d":3}]'
        spans = list(scanner.objects_in(text, 1, len(text) - 1))
        assert [text[s : e + 1] for s, e in spans] == [b'{"a":{"b":1}}', b'{"c":2}', b'{"d":3}']

    def test_stops_at_end_bound(self):
        text = b'[{"c":2}],"next":{"d":3}'
        end = text.index(b"]")
        assert len(list(scanner.objects_in(text, 1, end))) == 1


class TestKeyAnchoredLimitation:
    def test_key_in_unrelated_nested_object_is_matched(self):
        """Scans anchored at a section start still match keys from later sections.

        Implementation: The "current" section lacks temp, while a later hourly entry has one.
        Passing implies: The scanner is substring based, not path based; this boundary is preserved.
        """
        text = b'{"current":{"dt":1,"weather":[{"id":800}]},"hourly":[{"temp":61.0}]}'
        start = scanner.find_section(text, b'"current":')
        assert scanner.number_after(text, b'"temp":', start)[0] == 61.0


@pytest.mark.parametrize(
    "value, expected",
    [(72.4, 72), (72.5, 73), (-2.5, -3), (-2.4, -2), (0.0, 0)],
)
def test_round_half_away(value, expected):
    assert scanner.round_half_away(value) == expected
