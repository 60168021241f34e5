"""Variable name grammar and normalization.

A variable is referenced either in brackets (``[Toplam Fosfor]``, the
canonical form written by the formula builder) or bare
(``Toplam Fosfor > 0.5``). Bare references start with a letter and may
contain letters, digits, underscores and inner spaces, so multi-word lab
variable names work without brackets.

The same normalization is applied when a column's variable map is built
and when variables are extracted from a formula, so both sides agree on
what a name is.
"""

import re

# [Variable Name]
BRACKET_REF_RE = re.compile(r"\[([^\[\]]*)\]")

# Letter first, letter or digit last, inner spaces allowed. A preceding word
# character or dot excludes exponents such as the "e5" in "1e5".
BARE_NAME_RE = re.compile(r"(?<![\w.])[^\W\d_](?:[\w ]*\w)?")

# Bare words that are never variables
RESERVED_WORDS = frozenset(
    {"true", "false", "null", "none", "undefined", "nan", "infinity", "inf", "and", "or", "not"}
)

_TRAILING_COMMAS_RE = re.compile(r"[\s,]*,[\s,]*$")


def normalize_name(name: str) -> str:
    """
    Canonical spelling of a variable name.

    Trims surrounding whitespace and strips one or more trailing commas
    (spreadsheet exports often leave ``"İletkenlik,"``).
    """
    return _TRAILING_COMMAS_RE.sub("", name.strip()).strip()


def name_key(name: str) -> str:
    """Case-insensitive lookup key for a variable name."""
    return normalize_name(name).casefold()


def is_reserved(token: str) -> bool:
    return token.strip().casefold() in RESERVED_WORDS


def bracket_references(expression: str) -> list[str]:
    """Names written as ``[Name]``, normalized, in order of appearance."""
    return [normalize_name(m.group(1)) for m in BRACKET_REF_RE.finditer(expression)]


def bare_references(expression: str) -> list[str]:
    """Bare variable tokens, ignoring bracketed references and reserved words."""
    # Replace bracket refs with a neutral operator so neighbouring bare words
    # do not fuse with them.
    stripped = BRACKET_REF_RE.sub(" + ", expression)
    names = []
    for match in BARE_NAME_RE.finditer(stripped):
        token = normalize_name(match.group(0))
        if token and not is_reserved(token):
            names.append(token)
    return names


def extract_variables(expression: str) -> list[str]:
    """
    Extract referenced variable names from an expression.

    Bracketed references come first, then bare ones. The result is
    deduplicated case-insensitively, keeping the first spelling seen.

    Args:
        expression: Arithmetic expression, e.g. ``"([A] + Toplam Fosfor) * 2"``

    Returns:
        List of normalized variable names
    """
    seen: dict[str, str] = {}
    for name in bracket_references(expression) + bare_references(expression):
        if name:
            seen.setdefault(name.casefold(), name)
    return list(seen.values())


def name_pattern(name: str, ignore_case: bool = False) -> re.Pattern[str]:
    """
    Regex matching ``name`` as a whole bare token.

    Runs of whitespace inside the name match any run of whitespace in the
    expression. The lookarounds keep "Fosfor" from matching inside
    "Fosforlu" or inside a number like "2e5".
    """
    body = r"\s+".join(re.escape(part) for part in name.split())
    flags = re.IGNORECASE if ignore_case else 0
    return re.compile(rf"(?<![\w.]){body}(?!\w)", flags)
