"""
Unit tests for the usage response parser

Covers splitting the response line and the nested parameter grammar.
"""

import pytest

from cmdcatalog.core.domain.errors import UsageParseError
from cmdcatalog.infrastructure.scripts.usage_parser import (
    MAX_DEPTH,
    UsageParser,
    parse_usage_response,
    split_usage_response,
)


class TestSplitUsageResponse:
    """Tests for description/grammar splitting."""

    def test_description_and_grammar(self):
        assert split_usage_response('"Deploys it" | ENV|"Target"') == (
            "Deploys it",
            ' ENV|"Target"',
        )

    def test_no_pipe_is_description_only(self):
        assert split_usage_response('  "Just a description"  ') == ("Just a description", "")

    def test_pipe_inside_quotes_is_ignored(self):
        description, grammar = split_usage_response('"a | b" | NAME')
        assert description == "a | b"
        assert grammar == " NAME"

    def test_escaped_pipe_is_ignored(self):
        description, grammar = split_usage_response(r'cat a \| b | NAME')
        assert description == "cat a | b"
        assert grammar == " NAME"


class TestUsageParser:
    """Tests for the parameter grammar."""

    def test_flat_parameters_nest_until_end(self):
        parameters = UsageParser('a|"A" b|"B" end end c|"C" end').parse()

        assert [p.name for p in parameters] == ["a", "c"]
        assert parameters[0].description == "A"
        assert [p.name for p in parameters[0].parameters] == ["b"]
        assert parameters[0].parameters[0].description == "B"
        assert parameters[1].parameters == []

    def test_end_of_input_closes_everything(self):
        parameters = UsageParser("NAME arg").parse()

        assert [p.name for p in parameters] == ["NAME"]
        assert [p.name for p in parameters[0].parameters] == ["arg"]

    def test_optional_and_override_markers(self):
        parameters = UsageParser('[--release]|"Optimized" end !deploy end').parse()

        assert parameters[0].name == "[--release]"
        assert parameters[0].required is False
        assert parameters[1].name == "deploy"
        assert parameters[1].override is True
        assert parameters[1].required is True

    def test_bare_quoted_description_after_name(self):
        parameters = UsageParser('build "Builds the project" end').parse()
        assert parameters[0].description == "Builds the project"

    def test_escaped_quote_in_description(self):
        parameters = UsageParser(r'say|"He said \"hi\"" end').parse()
        assert parameters[0].description == 'He said "hi"'

    def test_empty_grammar(self):
        assert UsageParser("   ").parse() == []

    def test_end_without_open_parameter(self):
        with pytest.raises(UsageParseError) as exc_info:
            UsageParser("a end end").parse()
        assert exc_info.value.position == 6

    def test_description_without_parameter(self):
        with pytest.raises(UsageParseError):
            UsageParser('"orphan"').parse()

    def test_unterminated_quote(self):
        with pytest.raises(UsageParseError):
            UsageParser('NAME|"never closed').parse()

    def test_empty_override_name(self):
        with pytest.raises(UsageParseError):
            UsageParser("! end").parse()

    def test_nesting_limit(self):
        grammar = " ".join(f"p{i}" for i in range(MAX_DEPTH + 2))
        with pytest.raises(UsageParseError):
            UsageParser(grammar).parse()


class TestParseUsageResponse:
    """Tests for complete response parsing."""

    def test_full_response(self):
        parsed = parse_usage_response(
            '"Deploys the project" | ENV|"Target environment" [--dry-run] end end\n'
        )

        assert parsed.description == "Deploys the project"
        assert [p.name for p in parsed.parameters] == ["ENV"]
        assert parsed.parameters[0].parameters[0].name == "[--dry-run]"

    def test_description_only(self):
        parsed = parse_usage_response('"Prints the weather"')
        assert parsed.description == "Prints the weather"
        assert parsed.parameters == []
