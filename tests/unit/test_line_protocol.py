# tests/unit/test_line_protocol.py

"""Unit tests for iteration and error marker extraction."""

import pytest

from cstest.line_protocol import (
    ErrorLocation,
    find_iteration_count,
    last_nonempty_line,
    parse_error_line,
)


class TestIterationMarker:
    def test_marker_with_trailing_text(self) -> None:
        assert find_iteration_count("*****Iteration 42 of 100") == 42

    def test_marker_at_end_of_chunk(self) -> None:
        assert find_iteration_count("*****Iteration 7 ") == 7

    def test_marker_after_other_output(self) -> None:
        assert find_iteration_count("startup done\n*****Iteration 3 ****") == 3

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "nothing to see here",
            "*****Iteration ",
            "*****Iteration 12",  # no terminating space
            "*****Iteration  5 ",  # empty digit run
            "*****Iteration x1 of 2",
            "****Iteration 1 of 2",
        ],
    )
    def test_no_marker_yields_none(self, text: str) -> None:
        assert find_iteration_count(text) is None


class TestErrorMarker:
    def test_full_error_line(self) -> None:
        assert parse_error_line("chapter3 line 112: Unexpected *finish") == ErrorLocation(
            scene="chapter3", line=112, message="Unexpected *finish"
        )

    def test_scene_case_is_preserved(self) -> None:
        location = parse_error_line("Chapter_Two line 4: bad command")
        assert location is not None
        assert location.scene == "Chapter_Two"
        assert location.line == 4

    def test_message_is_not_trimmed(self) -> None:
        location = parse_error_line("intro line 4: bad command   ")
        assert location is not None
        assert location.message == "bad command   "

    def test_error_embedded_in_longer_line(self) -> None:
        location = parse_error_line("RANDOMTEST FAILED: startup line 9: Non-existent variable 'x'")
        assert location == ErrorLocation("startup", 9, "Non-existent variable 'x'")

    @pytest.mark.parametrize(
        "line",
        [None, "", "Randomtest failed", "intro at 4: oops", "intro line four: oops", "intro line 4:"],
    )
    def test_unmatched_lines_yield_none(self, line) -> None:
        assert parse_error_line(line) is None


class TestLastLine:
    def test_takes_final_line_of_multiline_chunk(self) -> None:
        assert last_nonempty_line("first\nsecond\nthird\n\n") == "third"

    def test_blank_chunk(self) -> None:
        assert last_nonempty_line(" \n\n") is None

    def test_strips_carriage_return(self) -> None:
        assert last_nonempty_line("one\r\ntwo\r\n") == "two"
