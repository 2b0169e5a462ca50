import pytest

from fluidsql.utils.text import camelize, pascalize, snake_case


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("FirstName", "first_name"),
        ("firstName", "first_name"),
        ("first_name", "first_name"),
        ("HTTPRequest", "http_request"),
        ("first-name", "first_name"),
        ("first name", "first_name"),
        ("ID", "id"),
        ("", ""),
    ],
)
def test_snake_case(value: str, expected: str) -> None:
    assert snake_case(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [("first_name", "firstName"), ("id", "id"), ("row_total_count", "rowTotalCount")],
)
def test_camelize(value: str, expected: str) -> None:
    assert camelize(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [("first_name", "FirstName"), ("id", "Id"), ("row_total_count", "RowTotalCount")],
)
def test_pascalize(value: str, expected: str) -> None:
    assert pascalize(value) == expected
