"""
Usage Response Parser

Parses the single line a script prints when asked to describe itself:

    "Script description" | build|"Builds the project" [--release]|"Optimized" end end

- Everything up to the first pipe that is neither escaped nor inside
  double quotes is the description (surrounding quotes stripped).
- The rest is the parameter grammar. ``NAME`` or ``NAME|"description"``
  opens a parameter, ``end`` closes it; the end of input closes every open
  parameter.
- ``[NAME]`` marks an optional parameter, a leading ``!`` marks a parameter
  that overrides a same-named command when catalogs are merged.
"""

import re
from dataclasses import dataclass, field

from cmdcatalog.core.domain.definitions import UsageParameter, is_optional_name
from cmdcatalog.core.domain.errors import UsageParseError

END_KEYWORD = "end"
OVERRIDE_MARKER = "!"
MAX_DEPTH = 64

_WHITESPACE = re.compile(r"\s*")
_TOKEN = re.compile(
    r'"(?P<quoted>(?:[^"\\]|\\.)*)"'
    r'|(?P<word>[^\s"|]+)(?:\|(?:"(?P<desc>(?:[^"\\]|\\.)*)"|(?P<bare>[^\s"|]*)))?'
)
_ESCAPE = re.compile(r"\\(.)")


@dataclass
class ParsedUsage:
    """Description and parameter tree of one script."""

    description: str
    parameters: list[UsageParameter] = field(default_factory=list)


@dataclass
class _Token:
    position: int
    word: str | None = None
    description: str | None = None
    quoted: str | None = None


def parse_usage_response(response: str) -> ParsedUsage:
    """
    Parse a complete usage response line.

    Args:
        response: Raw response of ``get-command-definitions``

    Returns:
        ParsedUsage with description and parameters

    Raises:
        UsageParseError: If the parameter grammar is malformed
    """
    description, grammar = split_usage_response(response)
    return ParsedUsage(
        description=description,
        parameters=UsageParser(grammar).parse(),
    )


def split_usage_response(response: str) -> tuple[str, str]:
    """
    Split a usage response into description and grammar.

    Returns:
        Tuple of (description, grammar); grammar is empty when the
        response has no separator.
    """
    in_quotes = False
    escaped = False
    for index, char in enumerate(response):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            in_quotes = not in_quotes
        elif char == "|" and not in_quotes:
            return _clean_description(response[:index]), response[index + 1 :]
    return _clean_description(response), ""


def _clean_description(text: str) -> str:
    return _unescape(text.strip().strip('"'))


def _unescape(text: str) -> str:
    return _ESCAPE.sub(r"\1", text)


class UsageParser:
    """Recursive descent parser for the parameter grammar."""

    def __init__(self, grammar: str):
        self._tokens = _tokenize(grammar)
        self._pos = 0

    def parse(self) -> list[UsageParameter]:
        """
        Parse the grammar into an ordered parameter tree.

        Raises:
            UsageParseError: On unbalanced ``end`` or misplaced descriptions
        """
        self._pos = 0
        return self._parse_level(depth=0)

    def _parse_level(self, depth: int) -> list[UsageParameter]:
        if depth > MAX_DEPTH:
            raise UsageParseError(f"Usage nesting exceeds {MAX_DEPTH} levels")

        parameters: list[UsageParameter] = []
        while self._pos < len(self._tokens):
            token = self._tokens[self._pos]
            self._pos += 1

            if token.word == END_KEYWORD:
                if depth == 0:
                    raise UsageParseError(
                        "'end' without an open parameter", position=token.position
                    )
                return parameters

            if token.word is None:
                raise UsageParseError(
                    "Description without a parameter", position=token.position
                )

            parameter = self._make_parameter(token)
            parameter.parameters = self._parse_level(depth + 1)
            parameters.append(parameter)

        return parameters

    def _make_parameter(self, token: _Token) -> UsageParameter:
        name = token.word or ""
        override = name.startswith(OVERRIDE_MARKER)
        if override:
            name = name[len(OVERRIDE_MARKER) :]
        if not name:
            raise UsageParseError("Empty parameter name", position=token.position)

        description = token.description
        if description is None and self._pos < len(self._tokens):
            following = self._tokens[self._pos]
            if following.quoted is not None:
                description = following.quoted
                self._pos += 1

        return UsageParameter(
            name=name,
            description=description or "",
            required=not is_optional_name(name),
            override=override,
        )


def _tokenize(grammar: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while True:
        pos = _WHITESPACE.match(grammar, pos).end()
        if pos >= len(grammar):
            return tokens

        match = _TOKEN.match(grammar, pos)
        if match is None or match.end() == pos:
            raise UsageParseError(
                f"Unexpected input at position {pos}: {grammar[pos:pos + 20]!r}",
                position=pos,
            )

        if match.group("quoted") is not None:
            tokens.append(_Token(position=pos, quoted=_unescape(match.group("quoted"))))
        else:
            description = match.group("desc")
            if description is None:
                description = match.group("bare") or None
            tokens.append(
                _Token(
                    position=pos,
                    word=match.group("word"),
                    description=_unescape(description) if description else None,
                )
            )
        pos = match.end()
