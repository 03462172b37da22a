"""
Tree Glob.

Resolve glob patterns against a directory tree.

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
import asyncio
import logging
import os
from collections import namedtuple
from . import _parse
from . import util
from .fs import OSFileSystem

__all__ = (
    "FULLMATCH", "NOFOLLOW", "F", "N",
    "ListError", "PatternError", "Resolution", "Glob",
    "aglob", "glob", "aresolve", "translate", "compile"
)

logger = logging.getLogger(__name__)

F = FULLMATCH = _parse.FULLMATCH
N = NOFOLLOW = _parse.NOFOLLOW

# Internal flags
_PARTIAL = _parse._PARTIAL

FLAG_MASK = _parse.FLAG_MASK

PatternError = _parse.PatternError


class ListError(Exception):
    """A directory in the searched tree could not be listed."""

    def __init__(self, path, error):
        """Initialize."""

        super(ListError, self).__init__("Could not list directory {!r}: {}".format(path, error))
        self.path = path
        self.error = error


class Resolution(namedtuple('Resolution', ['paths', 'errors'])):
    """Matched paths together with the directories that could not be listed."""


async def _gather(aws):
    """
    Run awaitables concurrently and return their results in order.

    If one fails, the others still running are cancelled before the
    failure is raised.
    """

    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        raise


class Glob(object):
    """
    Resolve patterns from a root directory.

    Each pattern is walked one directory level at a time. A level is listed
    once, the names are tested against the level's matcher and only the
    names that pass are inspected. The last level keeps regular files that
    are not links. Any other level keeps directories that are not links and
    walks into them with the rest of the pattern.

    After `**` every subdirectory, at every depth, is also tried as a fresh
    starting point for the rest of the pattern. That retry does not skip
    linked directories unless `NOFOLLOW` is set.

    Sibling inspections and descents run concurrently and are joined in
    listing order, so results come back in the order the filesystem lists
    them, pattern after pattern, duplicates included.
    """

    def __init__(self, root_dir, patterns, flags=0, fs=None, limit=0):
        """Initialize the directory walker object."""

        self.root_dir = os.path.abspath(os.fspath(root_dir))
        self.flags = flags & FLAG_MASK
        self.follow_links = not bool(self.flags & NOFOLLOW)
        self.partial = bool(self.flags & _PARTIAL)
        self.fs = fs if fs is not None else OSFileSystem()
        self.limit = limit
        self._semaphore = None
        self.pattern = [_parse.split(p, self.flags) for p in util.to_tuple(patterns)]

    async def _call(self, func, path):
        """Run a filesystem call, waiting for a free slot if calls are capped."""

        if self._semaphore is None:
            return await func(path)
        async with self._semaphore:
            return await func(path)

    async def _listdir(self, curdir):
        """List the directory or fail the branch."""

        try:
            return await self._call(self.fs.listdir, curdir)
        except OSError as e:
            logger.debug("Unable to list %s: %s", curdir, e)
            raise ListError(curdir, e) from e

    async def _stat(self, path):
        """Inspect an entry, `None` if it can't be inspected."""

        try:
            return await self._call(self.fs.stat, path)
        except OSError as e:
            logger.debug("Skipping %s: %s", path, e)
            return None

    async def _stat_names(self, curdir, names):
        """Inspect all names concurrently."""

        stats = await _gather(self._stat(os.path.join(curdir, name)) for name in names)
        return dict(zip(names, stats))

    @staticmethod
    def _is_file(st):
        """Regular file that is not itself a link."""

        return st is not None and st.is_file and not st.is_link

    @staticmethod
    def _is_dir(st, follow):
        """Directory, or a link to one when `follow` is set."""

        return st is not None and st.is_dir and (follow or not st.is_link)

    async def _descend(self, curdir, names, parts, deep=False):
        """Walk each named subdirectory and concatenate the results in order."""

        results = await _gather(self._walk(os.path.join(curdir, name), parts, deep) for name in names)
        return util.flatten(r[0] for r in results), util.flatten(r[1] for r in results)

    async def _walk(self, curdir, parts, deep=False):
        """Resolve the remaining parts from `curdir`."""

        if parts and parts[0].is_globstar:
            deep = True
            parts = parts[1:]

        # A trailing `**` leaves nothing to match, so everything matches.
        this = parts[0] if parts else None
        matcher = this.matcher if this is not None else None

        try:
            names = await self._listdir(curdir)
        except ListError as e:
            if not self.partial:
                raise
            return [], [e]

        matched = [name for name in names if matcher is None or matcher.match(name)]

        # In deep mode every entry is a candidate directory, so inspect them all once.
        stats = await self._stat_names(curdir, names if deep else matched)

        if len(parts) <= 1:
            paths = [os.path.join(curdir, name) for name in matched if self._is_file(stats[name])]
            errors = []
        else:
            dirs = [name for name in matched if self._is_dir(stats[name], False)]
            paths, errors = await self._descend(curdir, dirs, parts[1:])

        if deep:
            subdirs = [name for name in names if self._is_dir(stats[name], self.follow_links)]
            deep_paths, deep_errors = await self._descend(curdir, subdirs, parts, True)
            paths.extend(deep_paths)
            errors.extend(deep_errors)

        return paths, errors

    async def resolve(self):
        """Resolve all patterns."""

        self._semaphore = asyncio.Semaphore(self.limit) if self.limit > 0 else None
        logger.debug("Resolving %d pattern(s) from %s", len(self.pattern), self.root_dir)

        results = await _gather(self._walk(self.root_dir, parts) for parts in self.pattern)
        return Resolution(util.flatten(r[0] for r in results), util.flatten(r[1] for r in results))


def _patterns(patterns):
    """Accept either several patterns or a single sequence of them."""

    if len(patterns) == 1 and not isinstance(patterns[0], str):
        return util.to_tuple(patterns[0])
    return patterns


async def aglob(root_dir, *patterns, flags=0, fs=None, limit=0):
    """
    Resolve patterns and return the absolute paths of matching files.

    Any directory that can't be listed fails the whole call with `ListError`.
    """

    if flags & _PARTIAL:
        flags ^= _PARTIAL
    return (await Glob(root_dir, _patterns(patterns), flags, fs, limit).resolve()).paths


async def aresolve(root_dir, *patterns, flags=0, fs=None, limit=0):
    """
    Resolve patterns, skipping directories that can't be listed.

    Returns a `Resolution` of the matched paths and one `ListError` per
    directory that was skipped.
    """

    return await Glob(root_dir, _patterns(patterns), flags | _PARTIAL, fs, limit).resolve()


def glob(root_dir, *patterns, flags=0, fs=None, limit=0):
    """Glob (blocking, must not be called from a running event loop)."""

    return asyncio.run(aglob(root_dir, *patterns, flags=flags, fs=fs, limit=limit))


def translate(segment, *, flags=0):
    """Translate one segment to its regular expression."""

    return _parse.translate(segment, flags)


def compile(segment, *, flags=0):  # noqa A001
    """Compile one segment to a name matcher."""

    return _parse.compile(segment, flags)
