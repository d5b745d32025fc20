"""Reusable scalar predicates used by event matchers, preconditions, and scopes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class StringMatchMode(str, Enum):
    EQUALS = "is"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    REGEX = "regex"
    ANY = "any"


@dataclass(frozen=True)
class StringMatcher:
    """Predicate over a candidate text.

    Case sensitivity is fixed when the matcher is built. For regex matchers a
    case-insensitive matcher compiles the pattern with ``re.IGNORECASE``.
    """

    mode: StringMatchMode
    pattern: str = ""
    case_sensitive: bool = True
    _regex: re.Pattern[str] | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.mode is StringMatchMode.REGEX:
            flags = 0 if self.case_sensitive else re.IGNORECASE
            try:
                compiled = re.compile(self.pattern, flags)
            except re.error as exc:
                raise ValueError(f"invalid regular expression {self.pattern!r}: {exc}") from exc
            object.__setattr__(self, "_regex", compiled)

    @classmethod
    def equals(cls, pattern: str, *, case_sensitive: bool = True) -> StringMatcher:
        return cls(StringMatchMode.EQUALS, pattern, case_sensitive)

    @classmethod
    def contains(cls, pattern: str, *, case_sensitive: bool = True) -> StringMatcher:
        return cls(StringMatchMode.CONTAINS, pattern, case_sensitive)

    @classmethod
    def starts_with(cls, pattern: str, *, case_sensitive: bool = True) -> StringMatcher:
        return cls(StringMatchMode.STARTS_WITH, pattern, case_sensitive)

    @classmethod
    def ends_with(cls, pattern: str, *, case_sensitive: bool = True) -> StringMatcher:
        return cls(StringMatchMode.ENDS_WITH, pattern, case_sensitive)

    @classmethod
    def regex(cls, pattern: str, *, case_sensitive: bool = True) -> StringMatcher:
        return cls(StringMatchMode.REGEX, pattern, case_sensitive)

    @classmethod
    def any(cls) -> StringMatcher:
        return cls(StringMatchMode.ANY)

    def matches(self, candidate: str | None) -> bool:
        if self.mode is StringMatchMode.ANY:
            return True
        if candidate is None:
            return False
        if self.mode is StringMatchMode.REGEX:
            assert self._regex is not None
            return self._regex.search(candidate) is not None

        pattern = self.pattern
        if not self.case_sensitive:
            pattern = pattern.casefold()
            candidate = candidate.casefold()

        if self.mode is StringMatchMode.EQUALS:
            return candidate == pattern
        if self.mode is StringMatchMode.CONTAINS:
            return pattern in candidate
        if self.mode is StringMatchMode.STARTS_WITH:
            return candidate.startswith(pattern)
        if self.mode is StringMatchMode.ENDS_WITH:
            return candidate.endswith(pattern)
        raise AssertionError(f"unhandled string match mode {self.mode!r}")


@dataclass(frozen=True)
class NumberMatcher:
    """Predicate over a candidate integer.

    ``Val`` compares exactly, ``Range`` is inclusive on both ends (a ``None``
    bound is open), and ``Any`` accepts everything.
    """

    value: int | None = None
    min: int | None = None
    max: int | None = None
    is_range: bool = False

    def __post_init__(self) -> None:
        if self.is_range and self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"range minimum {self.min} is greater than maximum {self.max}")
        if not self.is_range and (self.min is not None or self.max is not None):
            raise ValueError("min/max bounds are only valid for range matchers")

    @classmethod
    def val(cls, value: int) -> NumberMatcher:
        return cls(value=value)

    @classmethod
    def range(cls, min: int | None = None, max: int | None = None) -> NumberMatcher:
        return cls(min=min, max=max, is_range=True)

    @classmethod
    def any(cls) -> NumberMatcher:
        return cls()

    @property
    def is_any(self) -> bool:
        return not self.is_range and self.value is None

    def matches(self, candidate: int) -> bool:
        if self.is_range:
            if self.min is not None and candidate < self.min:
                return False
            if self.max is not None and candidate > self.max:
                return False
            return True
        if self.value is None:
            return True
        return candidate == self.value


def optional_matches(matcher: NumberMatcher | None, candidate: int | None) -> bool:
    """An absent matcher imposes no constraint; a present one needs a candidate."""
    if matcher is None:
        return True
    if candidate is None:
        return False
    return matcher.matches(candidate)
