"""Shared helpers."""
import typing


def to_tuple(values: typing.Any) -> typing.Tuple[typing.Any, ...]:
    """Combine values."""

    return (values,) if isinstance(values, str) else tuple(values)


def flatten(values: typing.Iterable[typing.List[typing.Any]]) -> typing.List[typing.Any]:
    """Concatenate a sequence of lists, preserving order."""

    flat = []
    for value in values:
        flat.extend(value)
    return flat


class StringIter(object):
    """Walk a string one character at a time, with the ability to peek and rewind."""

    def __init__(self, string: str) -> None:
        """Initialize."""

        self._string = string
        self._index = 0

    def __iter__(self) -> "StringIter":
        """Iterate."""

        return self

    def __next__(self) -> str:
        """Python 3 iterator compatible next."""

        return self.iternext()

    @property
    def index(self) -> int:
        """Get current index."""

        return self._index

    def peek(self) -> str:
        """Get the next character without consuming it, or an empty string at the end."""

        return self._string[self._index:self._index + 1]

    def rewind(self, count: int) -> None:
        """Rewind index."""

        if count > self._index:  # pragma: no cover
            raise ValueError("Can't rewind past beginning!")

        self._index -= count

    def iternext(self) -> str:
        """Iterate through characters of the string."""

        try:
            char = self._string[self._index]
            self._index += 1
        except IndexError:
            raise StopIteration

        return char


class Immutable(object):
    """Immutable."""

    __slots__: typing.Tuple[typing.Any, ...] = tuple()

    def __init__(self, **kwargs: typing.Any) -> None:
        """Initialize."""

        for k, v in kwargs.items():
            super(Immutable, self).__setattr__(k, v)

    def __setattr__(self, name: str, value: typing.Any) -> None:
        """Prevent mutability."""

        raise AttributeError('Class is immutable!')
