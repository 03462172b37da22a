"""
Filesystem access used by the glob walker.

The walker only ever lists a directory and asks what a single entry is.
Both calls are coroutines; the default runs the `os` calls in an executor.
"""
import asyncio
import os
import stat
from collections import namedtuple

__all__ = ("EntryStat", "FileSystem", "OSFileSystem")


class EntryStat(namedtuple('EntryStat', ['is_file', 'is_dir', 'is_link'])):
    """
    What a directory entry is.

    `is_file` and `is_dir` describe what the entry resolves to, `is_link`
    describes the entry itself, the same way `os.DirEntry` reports them.
    """


class FileSystem(object):
    """Filesystem interface consumed by the walker."""

    async def listdir(self, path):
        """
        Return the entry names of `path` in listing order.

        Raise `OSError` if `path` can't be listed.
        """

        raise NotImplementedError

    async def stat(self, path):
        """
        Return the `EntryStat` of `path`.

        Raise `OSError` if `path` can't be inspected.
        """

        raise NotImplementedError


def _entry_stat(path):
    """Inspect path, following a link for the type but reporting the link itself."""

    st = os.lstat(path)
    is_link = stat.S_ISLNK(st.st_mode)
    if is_link:
        # A dangling link raises here.
        st = os.stat(path)
    return EntryStat(stat.S_ISREG(st.st_mode), stat.S_ISDIR(st.st_mode), is_link)


class OSFileSystem(FileSystem):
    """Local filesystem, with the blocking calls run in an executor."""

    def __init__(self, executor=None):
        """Initialize; `None` uses the loop's default executor."""

        self.executor = executor

    async def _run(self, func, *args):
        """Call `func` in the executor and wait for it."""

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, func, *args)

    async def listdir(self, path):
        """List directory."""

        return await self._run(os.listdir, path)

    async def stat(self, path):
        """Stat entry."""

        return await self._run(_entry_stat, path)
