from datetime import date

import pytest

from para_sorting import (
    compare_by_last_modified, extract_date_format, format_item_name, parse_name_date, sort_items
)


def entry(name, mtime=0):
    return {"path": f"Projects/{name}", "name": name, "is_dir": True, "mtime": mtime}


def names(entries):
    return [e["name"] for e in entries]


# --- name formats ---

def test_extract_date_format():
    assert extract_date_format("YYYY-MM-DD {{name}}") == "YYYY-MM-DD "
    assert extract_date_format("{{name}}") == ""
    assert extract_date_format("YYMMDD_") == "YYMMDD_"


@pytest.mark.parametrize("name_format, expected", [
    ("{{name}}", "Launch"),
    ("YYYY-MM-DD {{name}}", "2024-03-05 Launch"),
    ("YYMMDD_{{name}}", "240305_Launch"),
    ("YYYY-MM ", "2024-03 Launch"),
    ("{{name}} (YYYY)", "Launch (2024)"),
])
def test_format_item_name(name_format, expected):
    assert format_item_name(name_format, "Launch", date(2024, 3, 5)) == expected


def test_tokens_inside_the_name_are_left_alone():
    assert format_item_name("YYYY {{name}}", "MM review", date(2024, 3, 5)) == "2024 MM review"


@pytest.mark.parametrize("item_name, date_format, expected", [
    ("2024-03-05 Launch", "YYYY-MM-DD ", date(2024, 3, 5)),
    ("240305_Launch", "YYMMDD_", date(2024, 3, 5)),
    ("2023-11 Budget", "YYYY-MM ", date(2023, 11, 1)),
])
def test_parse_name_date(item_name, date_format, expected):
    assert parse_name_date(item_name, date_format) == expected


@pytest.mark.parametrize("name_format", ["YYYY-MM-DD {{name}}", "YYMMDD_{{name}}", "[YYYY.MM.DD] {{name}}"])
def test_formatted_names_parse_back_to_their_date(name_format):
    on_date = date(2025, 12, 31)
    item_name = format_item_name(name_format, "Launch", on_date)
    assert parse_name_date(item_name, extract_date_format(name_format)) == on_date


@pytest.mark.parametrize("item_name, date_format", [
    ("Launch", "YYYY-MM-DD "),
    ("2024-13-40 Broken", "YYYY-MM-DD "),
    ("2024-03-05 Launch", ""),
    ("2024-03-05 Launch", "Draft "),
    ("2024-2024 Twice", "YYYY-YYYY "),
    ("03-05 No year", "MM-DD "),
])
def test_parse_name_date_without_a_usable_date(item_name, date_format):
    assert parse_name_date(item_name, date_format) is None


# --- ordering ---

def test_compare_by_last_modified():
    assert compare_by_last_modified(entry("a", 20), entry("b", 10)) < 0
    assert compare_by_last_modified(entry("a", 10), entry("b", 20)) > 0
    assert compare_by_last_modified(entry("a", 10), entry("b", 10)) == 0


def test_default_order_is_most_recent_first():
    entries = [entry("old", 100), entry("new", 300), entry("mid", 200)]
    assert names(sort_items(entries)) == ["new", "mid", "old"]


def test_sort_by_name_ignores_case():
    entries = [entry("beta"), entry("Alpha"), entry("gamma")]
    assert names(sort_items(entries, "name")) == ["Alpha", "beta", "gamma"]


def test_sort_by_name_date_puts_undated_items_last():
    entries = [entry("Someday"), entry("2023-01-10 Old"), entry("2024-06-01 New"), entry("Anytime")]
    ordered = sort_items(entries, "name_date", "YYYY-MM-DD {{name}}")
    assert names(ordered) == ["2024-06-01 New", "2023-01-10 Old", "Anytime", "Someday"]


def test_sort_does_not_modify_the_input():
    entries = [entry("b", 1), entry("a", 2)]
    sort_items(entries, "name")
    assert names(entries) == ["b", "a"]
