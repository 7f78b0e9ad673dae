import pytest

from scim_compat.core.filters import SUPPORTED_OPERATORS, parse_scim_filter
from scim_compat.core.models import ExpressionCondition, OperationalCondition


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_empty_filter(raw):
    assert parse_scim_filter(raw) is None


def test_simple_expression():
    assert parse_scim_filter('displayName eq "engineering"') == ExpressionCondition("displayName", "eq", "engineering")


def test_operator_is_case_insensitive():
    assert parse_scim_filter('displayName SW "eng"') == ExpressionCondition("displayName", "sw", "eng")


def test_single_quoted_value_with_domain():
    assert parse_scim_filter("displayName co 'SECONDARY/op'") == ExpressionCondition("displayName", "co", "SECONDARY/op")


def test_empty_value():
    assert parse_scim_filter('displayName sw ""') == ExpressionCondition("displayName", "sw", "")


def test_compound_filter():
    condition = parse_scim_filter('displayName sw "a" AND displayName ew "z"')
    assert condition == OperationalCondition(
        "and",
        ExpressionCondition("displayName", "sw", "a"),
        ExpressionCondition("displayName", "ew", "z"),
    )


def test_logical_keyword_inside_quotes_is_a_value():
    assert parse_scim_filter('displayName eq "r and d"') == ExpressionCondition("displayName", "eq", "r and d")


@pytest.mark.parametrize("raw", ['displayName gt "a"', "displayName eq", 'displayName eq "unterminated', "present"])
def test_malformed_filters(raw):
    with pytest.raises(ValueError):
        parse_scim_filter(raw)


@pytest.mark.parametrize("operator", SUPPORTED_OPERATORS)
def test_every_supported_operator_parses(operator):
    assert parse_scim_filter(f'displayName {operator} "x"') == ExpressionCondition("displayName", operator, "x")
