"""Placeholder substitution for template contents and file names.

A placeholder is a literal token such as ``$name``.  Matching follows one
rule for both text and bytes:

* the scan is leftmost, single pass and non-overlapping, so replacement
  values are never re-scanned;
* when several tokens could start at the same position the longest one wins;
* a token ending in an identifier character (``[A-Za-z0-9_]``) only matches
  when it is *not* immediately followed by another identifier character, so
  ``$name`` never matches inside ``$nameLong``;
* tokens not present in the mapping (``$HOME``, ``$(cmd)``) are left alone.

Binary files are detected by :func:`is_binary` and are never substituted.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType

_IDENT_CHARS = "A-Za-z0-9_"
_WORD_END = re.compile(rf"[{_IDENT_CHARS}]\Z")

# C0 controls that never occur in text files. Tab, LF, VT, FF, CR and ESC
# (ANSI colour sequences in scripts) are allowed.
_DISALLOWED_CONTROL_BYTES = frozenset(range(0x20)) - {0x09, 0x0A, 0x0B, 0x0C, 0x0D, 0x1B}


def is_binary(content: bytes) -> bool:
    """Return ``True`` if *content* contains a disallowed control byte."""
    return not _DISALLOWED_CONTROL_BYTES.isdisjoint(content)


def _token_pattern(token: str) -> str:
    pattern = re.escape(token)
    if _WORD_END.search(token):
        pattern += rf"(?![{_IDENT_CHARS}])"
    return pattern


class SubstitutionEngine:
    """Applies an immutable placeholder -> value mapping to text and bytes."""

    def __init__(self, mapping: Mapping[str, str]) -> None:
        for token in mapping:
            if not token:
                raise ValueError("placeholder tokens must not be empty")
        self.mapping: Mapping[str, str] = MappingProxyType(dict(mapping))

        # Longest first so the alternation prefers "$nameLong" over "$name".
        tokens = sorted(self.mapping, key=lambda t: (-len(t), t))
        if tokens:
            source = "|".join(_token_pattern(t) for t in tokens)
            self._text_re: re.Pattern[str] | None = re.compile(source)
            self._bytes_re: re.Pattern[bytes] | None = re.compile(source.encode("utf-8"))
        else:
            self._text_re = None
            self._bytes_re = None
        self._bytes_values = {
            token.encode("utf-8"): value.encode("utf-8")
            for token, value in self.mapping.items()
        }

    def apply_text(self, value: str) -> str:
        """Substitute placeholders in a string (typically one path segment)."""
        if self._text_re is None:
            return value
        return self._text_re.sub(lambda m: self.mapping[m.group(0)], value)

    def apply_bytes(self, content: bytes) -> bytes:
        """Substitute placeholders in raw file content.

        Binary content is returned unchanged.
        """
        if self._bytes_re is None or is_binary(content):
            return content
        return self._bytes_re.sub(lambda m: self._bytes_values[m.group(0)], content)

    def apply_segments(self, segments: tuple[str, ...]) -> tuple[str, ...]:
        """Substitute each path segment independently."""
        return tuple(self.apply_text(segment) for segment in segments)


def apply(value: str | bytes, mapping: Mapping[str, str]) -> str | bytes:
    """One-shot substitution of *value* with *mapping*."""
    engine = SubstitutionEngine(mapping)
    if isinstance(value, bytes):
        return engine.apply_bytes(value)
    return engine.apply_text(value)
