"""Placeholder preservation: mask parameters before translation, restore after.

Parameters such as ":name" are swapped for positional markers ("#{0}",
"#{1}", ...) which translation engines leave alone, then swapped back in
the translated text.
"""

import re

# e.g. ":name"
DEFAULT_PATTERN = r":(\w+)"

MARKER_RE = re.compile(r"#\{(\d+)\}")

# Markers already present in source text are masked too so they survive
# reinjection verbatim.
_LITERAL_MARKER = r"#\{\d+\}"

# Leading inline flags such as "(?i)"; pattern.flags already carries them.
_INLINE_FLAGS_RE = re.compile(r"^\(\?[aiLmsux]+\)")


def resolve_pattern(mode: bool | str | re.Pattern) -> re.Pattern | None:
    """Turn a preserve-parameters mode into a compiled pattern.

    Args:
        mode: True for the default pattern, False to disable preservation,
            or a custom regex (string or compiled).

    Returns:
        Compiled pattern, or None when preservation is disabled.

    Raises:
        re.error: If a custom pattern does not compile.
    """
    if mode is True:
        return re.compile(DEFAULT_PATTERN)
    if mode is False or mode is None:
        return None
    if isinstance(mode, re.Pattern):
        return mode
    return re.compile(mode)


def extract(text: str, pattern: re.Pattern | None) -> tuple[str, list[str]]:
    """Replace every pattern match with a positional marker.

    Matches are numbered left to right from 0. The counter lives only for
    this call, so two calls on the same text produce the same markers.
    Literal "#{n}" tokens in the source are masked like placeholders.

    Args:
        text: Source text.
        pattern: Compiled placeholder pattern, or None to skip masking.

    Returns:
        Tuple of (masked_text, replacements) where replacements[i] is the
        original substring behind marker "#{i}".
    """
    if pattern is None:
        return text, []

    replacements: list[str] = []

    def _mask(match: re.Match) -> str:
        replacements.append(match.group(0))
        return f"#{{{len(replacements) - 1}}}"

    body = _INLINE_FLAGS_RE.sub("", pattern.pattern)
    masking = re.compile(f"{_LITERAL_MARKER}|(?:{body})", pattern.flags)
    return masking.sub(_mask, text), replacements


def inject(text: str, replacements: list[str]) -> str:
    """Restore placeholders in translated text.

    Markers whose ordinal has no stored replacement (the engine invented
    one) become empty strings.

    Args:
        text: Translated text containing positional markers.
        replacements: Originals returned by extract().

    Returns:
        Text with every marker substituted.
    """

    def _restore(match: re.Match) -> str:
        index = int(match.group(1))
        return replacements[index] if index < len(replacements) else ""

    return MARKER_RE.sub(_restore, text)
