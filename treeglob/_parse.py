"""
Tree Glob.

Segment parsing and compiling.

Licensed under MIT
Copyright (c) 2018 - 2020 Isaac Muse <isaacmuse@gmail.com>

Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated
documentation files (the "Software"), to deal in the Software without restriction, including without limitation
the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software,
and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all copies or substantial portions
of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED
TO THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL
THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION OF
CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS
IN THE SOFTWARE.
"""
import re
import os
import copyreg
import functools
from collections import namedtuple
from . import util

RECURSIVE = '**'

EXT_TYPES = frozenset(('*', '?', '+', '@', '!'))

RE_SEP = re.compile('[{}]'.format(re.escape(os.sep + (os.altsep or ''))))

# Flags are shared by the parser and the walker.
# Internal flags are found at `0x10000` and above.
FULLMATCH = 0x0001
NOFOLLOW = 0x0002

# Internal flag
_PARTIAL = 0x10000  # Collect listing failures instead of failing the whole resolution.

FLAG_MASK = (
    FULLMATCH |
    NOFOLLOW |
    _PARTIAL
)

# Only these affect how a segment compiles.
PARSE_FLAGS = FULLMATCH

# Pieces to construct the name expression

# Question mark: zero or one character, never a dot
_QMARK = r'[^.]?'
# Star: zero or more characters, never a dot
_STAR = r'[^.]*'
# Group that matches one or none
_QMARK_GROUP = r'(?:%s)?'
# Group that matches zero or more
_STAR_GROUP = r'(?:%s)*'
# Group that matches one or more
_PLUS_GROUP = r'(?:%s)+'
# Group that matches exactly one
_GROUP = r'(?:%s)'
# Lookahead that refuses the group at this position
_EXCLA_GROUP = r'(?!%s)'
# Whole name
_FULL = r'\A(?:%s)\Z'

_EXT_GROUPS = {
    '?': _QMARK_GROUP,
    '*': _STAR_GROUP,
    '+': _PLUS_GROUP,
    '@': _GROUP,
    '!': _EXCLA_GROUP
}


class PatternError(ValueError):
    """Pattern can't be resolved."""


class GlobPart(namedtuple('GlobPart', ['pattern', 'matcher', 'is_globstar'])):
    """
    One directory level of a pattern.

    `matcher` is `None` for the recursive marker.
    """


class SegmentParser(object):
    """
    Translate one path segment into a regular expression.

    The segment is read once, left to right. Extended groups are parsed
    recursively, so wildcards and further groups work inside them.
    """

    def __init__(self, segment, flags=0):
        """Initialize."""

        self.segment = segment
        self.fullmatch = bool(flags & FULLMATCH)

    def _sequence(self, i):
        """Handle character class."""

        result = ['[']

        c = next(i)
        if c == '!':
            result.append('^')
            c = next(i)

        chars = []
        while c != ']':
            chars.append(c)
            c = next(i)

        if not chars:
            raise StopIteration

        for c in chars:
            # Leave ranges alone
            result.append(c if c == '-' else re.escape(c))
        result.append(']')
        return ''.join(result)

    def _extend(self, c, i):
        """Handle extended group, `i` is positioned on the opening bracket."""

        next(i)
        return _EXT_GROUPS[c] % self._parse(i, nested=True)

    def _parse(self, i, nested=False):
        """Parse up to the end of the segment or, when nested, up to the closing bracket."""

        result = []

        for c in i:
            if nested and c == ')':
                return ''.join(result)

            if c in EXT_TYPES and i.peek() == '(':
                index = i.index
                try:
                    result.append(self._extend(c, i))
                    continue
                except StopIteration:
                    # Unterminated group, so the lead character is just itself.
                    i.rewind(i.index - index)

            if c == '*':
                result.append(_STAR)
            elif c == '?':
                result.append(_QMARK)
            elif c == '[':
                index = i.index
                try:
                    result.append(self._sequence(i))
                except StopIteration:
                    i.rewind(i.index - index)
                    result.append(re.escape(c))
            elif c == '|' and nested:
                result.append(c)
            else:
                result.append(re.escape(c))

        if nested:
            raise StopIteration

        return ''.join(result)

    def parse(self):
        """Parse the segment."""

        i = util.StringIter(self.segment)
        pattern = self._parse(i)
        return _FULL % pattern if self.fullmatch else pattern


class SegmentMatcher(util.Immutable):
    """Case insensitive name match object."""

    __slots__ = ("_pattern", "_hash")

    def __init__(self, pattern):
        """Initialization."""

        super(SegmentMatcher, self).__init__(
            _pattern=pattern,
            _hash=hash((type(self), pattern))
        )

    @property
    def pattern(self):
        """Compiled expression."""

        return self._pattern

    def __hash__(self):
        """Hash."""

        return self._hash

    def __eq__(self, other):
        """Equal."""

        return isinstance(other, SegmentMatcher) and self._pattern == other._pattern

    def __ne__(self, other):
        """Not equal."""

        return not self.__eq__(other)

    def __repr__(self):
        """Representation."""

        return '{}({!r})'.format(type(self).__name__, self._pattern.pattern)

    def match(self, name):
        """Match name."""

        return self._pattern.search(name) is not None


def _pickle(p):
    """Pickle the matcher by its pattern."""

    return SegmentMatcher, (p._pattern,)


copyreg.pickle(SegmentMatcher, _pickle)


def translate(segment, flags=0):
    """Translate a segment to a regular expression string."""

    return SegmentParser(segment, flags & PARSE_FLAGS).parse()


@functools.lru_cache(maxsize=256, typed=True)
def _compile(segment, flags):
    """Compile the segment to regex."""

    try:
        return re.compile(translate(segment, flags), re.IGNORECASE)
    except re.error as e:
        raise PatternError("Invalid segment {!r}: {}".format(segment, e)) from e


def compile(segment, flags=0):  # noqa A001
    """Compile a segment into a matcher."""

    if segment == RECURSIVE:
        raise PatternError("The recursive marker does not compile to a matcher")

    return SegmentMatcher(_compile(segment, flags & PARSE_FLAGS))


def split(pattern, flags=0):
    """
    Split a pattern into its directory levels.

    Empty levels (leading, doubled, or trailing separators) are dropped and
    runs of the recursive marker collapse into one.
    """

    if not isinstance(pattern, str):
        raise TypeError("Pattern must be a string, not {}".format(type(pattern).__name__))

    parts = []
    for value in RE_SEP.split(pattern):
        if not value:
            continue

        globstar = value == RECURSIVE
        if globstar and parts and parts[-1].is_globstar:
            continue
        parts.append(GlobPart(value, None if globstar else compile(value, flags), globstar))

    if not parts:
        raise PatternError("Pattern {!r} has no segments".format(pattern))

    return tuple(parts)
