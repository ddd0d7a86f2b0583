import math
from fractions import Fraction

import pytest

from lottery.logic.exceptions import InvalidRangeError
from lottery.logic.roster import build_roster, default_names, parse_roster_text, range_names


class TestParseRosterText:
    def test_one_name_per_line(self):
        assert parse_roster_text("Alice\nBob\nCarol") == ["Alice", "Bob", "Carol"]

    def test_blank_lines_and_whitespace_are_dropped(self):
        text = "  Alice  \n\n\t\nBob\r\n   \n Carol"
        assert parse_roster_text(text) == ["Alice", "Bob", "Carol"]

    def test_empty_text_gives_empty_list(self):
        assert parse_roster_text("") == []


class TestBuildRoster:
    def test_ids_are_unique_and_names_kept_in_order(self):
        roster = build_roster(["Alice", "Bob", "Alice"])

        assert [p.name for p in roster] == ["Alice", "Bob", "Alice"]
        assert len({p.id for p in roster}) == 3

    def test_names_are_trimmed_and_blanks_discarded(self):
        roster = build_roster([" Alice ", "", "   ", "Bob"])
        assert [p.name for p in roster] == ["Alice", "Bob"]

    def test_every_build_assigns_fresh_ids(self):
        first = build_roster(["Alice"])
        second = build_roster(["Alice"])
        assert first[0].id != second[0].id


class TestRangeNames:
    def test_inclusive_ascending(self):
        assert range_names(3, 7) == ["3", "4", "5", "6", "7"]

    def test_single_value_range(self):
        assert range_names(5, 5) == ["5"]

    def test_negative_bounds(self):
        assert range_names(-2, 1) == ["-2", "-1", "0", "1"]

    def test_integral_floats_are_accepted(self):
        assert range_names(1.0, 3.0) == ["1", "2", "3"]

    def test_reversed_range_rejected(self):
        with pytest.raises(InvalidRangeError, match="greater than"):
            range_names(5, 3)

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf, 1.5, "3", None, True, Fraction(1, 2)])
    def test_non_integer_bounds_rejected(self, bad):
        with pytest.raises(InvalidRangeError):
            range_names(bad, 10)
        with pytest.raises(InvalidRangeError):
            range_names(1, bad)


class TestDefaultNames:
    def test_default_roster_is_one_to_n(self):
        names = default_names(100)
        assert names[0] == "1"
        assert names[-1] == "100"
        assert len(names) == 100

    def test_zero_size_gives_empty_roster(self):
        assert default_names(0) == []
