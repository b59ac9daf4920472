import math

import pytest

from plugins.research_tools.core import (
    InvalidColumnError,
    InvalidCsvError,
    ResearchToolError,
    csv_chart_data,
    csv_to_records,
    describe,
    numeric_values,
    parse_bibtex,
)

CSV = b"month , sales,region\nJan, 10 ,north\n\nFeb,n/a,south\nMar,7.5\n"

BIBTEX = """@article{smith2020,
  title = {Page Ranges in Practice},
  author = { Smith, Jane },
  year = {2020}
}

@book{doe2019,
  title = {Lenient Parsers},
  publisher = {Example Press}
}
"""


def test_csv_to_records_trims_and_fills_missing():
    result = csv_to_records(CSV)
    assert result["columns"] == ["month", "sales", "region"]
    assert result["row_count"] == 3
    assert result["column_count"] == 3
    assert result["records"][0] == {"month": "Jan", "sales": "10", "region": "north"}
    assert result["records"][2] == {"month": "Mar", "sales": "7.5", "region": ""}


def test_csv_to_records_rejects_empty_file():
    with pytest.raises(InvalidCsvError):
        csv_to_records(b"")


def test_chart_data_coerces_non_numeric_to_zero():
    result = csv_chart_data(CSV, "month", "sales", "bar")
    assert result["chart_type"] == "bar"
    assert result["headers"] == ["month", "sales", "region"]
    assert result["chart_data"]["labels"] == ["Jan", "Feb", "Mar"]
    assert result["chart_data"]["datasets"] == [{"label": "sales", "data": [10.0, 0.0, 7.5]}]


def test_chart_data_validates_columns_and_type():
    with pytest.raises(InvalidColumnError):
        csv_chart_data(CSV, "month", "profit")
    with pytest.raises(InvalidColumnError):
        csv_chart_data(CSV, "m" * 101, "sales")
    with pytest.raises(InvalidColumnError):
        csv_chart_data(CSV, "month", "sales", "radar")


def test_parse_bibtex_entries():
    entries = parse_bibtex(BIBTEX)
    assert [(entry.type, entry.key) for entry in entries] == [
        ("article", "smith2020"),
        ("book", "doe2019"),
    ]
    assert entries[0].fields == {
        "title": "Page Ranges in Practice",
        "author": "Smith, Jane",
        "year": "2020",
    }
    assert entries[1].to_dict()["fields"]["publisher"] == "Example Press"


def test_parse_bibtex_limits():
    assert parse_bibtex("no entries here") == []
    with pytest.raises(ResearchToolError):
        parse_bibtex("")
    with pytest.raises(ResearchToolError):
        parse_bibtex("x" * 11, max_length=10)


def test_numeric_values_skips_non_numbers():
    assert numeric_values([1, "2", " 3.5 ", "abc", None, True, "", float("nan"), [4]]) == [
        1.0,
        2.0,
        3.5,
    ]


def test_describe_population_statistics():
    stats = describe([2, 4, 4, 4, 5, 5, 7, 9, "skip"])
    assert stats["count"] == 8
    assert stats["sum"] == 40
    assert stats["mean"] == 5
    assert stats["median"] == 4.5
    assert stats["min"] == 2
    assert stats["max"] == 9
    assert stats["variance"] == 4
    assert math.isclose(stats["standard_deviation"], 2.0)


def test_describe_odd_median_and_limits():
    assert describe([3, 1, 2])["median"] == 2
    with pytest.raises(ResearchToolError):
        describe([])
    with pytest.raises(ResearchToolError):
        describe(["a", "b"])
    with pytest.raises(ResearchToolError):
        describe([1, 2, 3], max_items=2)
