"""
Semantic version handling for tsupdater.

The installed release is identified by the name of the directory the active
pointer resolves to, and the published releases by the link texts of the
mirror listing. Both are parsed into Version values so they can be compared
under SemVer precedence.

Modules
-------
keys : module
    Strict SemVer 2.0 parsing and precedence ordering.

Public API
----------
Version : dataclass
    Immutable, totally ordered semantic version.
InvalidVersion : exception
    Raised by parse_version for malformed input (a ValueError).
parse_version : function
    Parse a version string.
compare_versions : function
    Compare two versions, returning -1, 0, or 1.

Examples
--------
    >>> from tsupdater.versioning import parse_version
    >>> parse_version("3.13.7") < parse_version("3.13.8")
    True
    >>> parse_version("1.0.0") > parse_version("1.0.0-rc.1")
    True
"""

from .keys import InvalidVersion, Version, compare_versions, parse_version

__all__ = ["InvalidVersion", "Version", "compare_versions", "parse_version"]
