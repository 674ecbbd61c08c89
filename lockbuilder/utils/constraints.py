import re

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from ..errors import InvalidConstraint

AND = ","
OR = "||"

_TOKEN_RE = re.compile(r"(,|\|\|)")
_PEP440_OPERATORS = ("===", "==", "!=", "<=", ">=", "~=", "<", ">")


def tokenize(constraint: str):
    """Split a constraint on ',' and '||', keeping the delimiters as tokens."""
    return [token.strip() for token in _TOKEN_RE.split(constraint) if token.strip()]


def _next_release(parts, index):
    bumped = list(parts[:index]) + [parts[index] + 1]
    return ".".join(str(p) for p in bumped)


def _caret_range(text):
    version = Version(text)
    parts = version.release
    for index, part in enumerate(parts):
        if part != 0 or index == len(parts) - 1:
            return SpecifierSet(f">={text},<{_next_release(parts, index)}")


def _tilde_range(text):
    version = Version(text)
    parts = version.release
    index = 0 if len(parts) == 1 else 1
    return SpecifierSet(f">={text},<{_next_release(parts, index)}")


def comparator_to_specifier(comparator: str) -> SpecifierSet:
    """
    Translates a single Poetry-style comparator into a SpecifierSet.

    Supports '*', the PEP 440 operators, caret ('^1.2') and tilde ('~1.2')
    ranges, and bare versions which mean an exact (or, with '.*', prefix) match.
    """
    text = "".join(comparator.split())
    try:
        if text == "*":
            return SpecifierSet()
        if text.startswith("^"):
            return _caret_range(text[1:])
        if text.startswith("~") and not text.startswith("~="):
            return _tilde_range(text[1:])
        if text.startswith(_PEP440_OPERATORS):
            return SpecifierSet(text)
        return SpecifierSet(f"=={text}")
    except (InvalidSpecifier, InvalidVersion) as e:
        raise InvalidConstraint(f"Invalid version comparator '{comparator}': {e}")


def satisfies(version: str, constraint: str) -> bool:
    """
    Evaluates a compound constraint such as '>=2.7, !=3.0.* || >=3.5'.

    The expression is folded strictly left to right: each delimiter sets the
    operator applied to the next comparator, so 'a || b, c' is (a or b) and c.
    An empty constraint is always satisfied.
    """
    try:
        candidate = Version(version)
    except InvalidVersion as e:
        raise InvalidConstraint(f"Invalid version '{version}': {e}")

    operator, state = AND, True
    for token in tokenize(constraint or ""):
        if token in (AND, OR):
            operator = token
            continue
        matched = comparator_to_specifier(token).contains(candidate, prereleases=True)
        if operator == AND:
            state = state and matched
        else:
            state = state or matched
    return state
