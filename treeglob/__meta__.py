"""Meta related things."""
from collections import namedtuple

__all__ = ("Version", "__version_info__", "__version__")

RELEASE_LEVELS = ("alpha", "beta", "candidate", "final")


class Version(namedtuple("Version", ["major", "minor", "micro", "release"])):
    """Version (`major`, `minor`, `micro`, `release`)."""

    def __new__(cls, major, minor, micro, release="final"):
        """Validate version info."""

        if release not in RELEASE_LEVELS:
            raise ValueError("'{}' is not a valid release type".format(release))
        return super(Version, cls).__new__(cls, major, minor, micro, release)

    def _get_canonical(self):
        """Get the canonical output string."""

        ver = "{}.{}.{}".format(self.major, self.minor, self.micro)
        if self.release != "final":
            ver += {"alpha": "a", "beta": "b", "candidate": "rc"}[self.release]
        return ver


__version_info__ = Version(1, 0, 0, "final")
__version__ = __version_info__._get_canonical()
