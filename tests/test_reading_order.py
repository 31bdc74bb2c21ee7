"""Tests for reading order linearization."""

from nutrilabel.document_analyzers import ReadingOrderAnalyzer


def test_rows_are_ordered_top_to_bottom(fragment):
    """Rows further apart than the threshold keep their vertical order regardless of x."""
    lower_left = fragment("second", cx=0.1, cy=0.16)
    upper_right = fragment("first", cx=0.9, cy=0.1)

    ordered = ReadingOrderAnalyzer().order([lower_left, upper_right])

    assert [f.text for f in ordered] == ["first", "second"]


def test_fragments_in_a_row_are_ordered_left_to_right(fragment):
    """Fragments within the threshold form one row sorted by x."""
    fragments = [
        fragment("5g", cx=0.8, cy=0.31),
        fragment("Total", cx=0.2, cy=0.30),
        fragment("Fat", cx=0.5, cy=0.32),
    ]

    assert ReadingOrderAnalyzer().linearize(fragments) == "Total Fat 5g"


def test_linearize_joins_rows_with_newlines(fragment, label_fragments):
    text = ReadingOrderAnalyzer().linearize(list(reversed(label_fragments)))

    assert text == "Calories 250\nProtein 12g\nTotal Fat 5g"


def test_row_membership_is_anchored_on_first_fragment(fragment):
    """A slow drift in y does not chain into one long row."""
    fragments = [
        fragment("a", cx=0.1, cy=0.10),
        fragment("b", cx=0.2, cy=0.14),
        fragment("c", cx=0.3, cy=0.18),
    ]

    rows = ReadingOrderAnalyzer().group_rows(fragments)

    assert [[f.text for f in row] for row in rows] == [["a", "b"], ["c"]]


def test_empty_input():
    analyzer = ReadingOrderAnalyzer()
    assert analyzer.group_rows([]) == []
    assert analyzer.linearize([]) == ""
