"""Range-string parsing for dependency declarations.

A declared range may carry an override of the package name, which lets a
dependency key install a different registry package (aliasing):

    "^1.2.0"                   plain range
    "real-name@^2.0.0"         name@range
    "npm:real-name@^2.0.0"     scope:name@range
    "npm:@scope/pkg@^1.0.0"    scoped real name, range after the last "@"
"""

from typing import Tuple

NAME_SEPARATOR = "@"
SCOPE_SEPARATOR = ":"


def _split_override(value: str) -> Tuple[str, str]:
    """Return (name_part, range_part) split at the last ``@``.

    A leading ``@`` (scoped name with no range) is part of the name.
    """
    name_part, sep, range_part = value.rpartition(NAME_SEPARATOR)
    if not sep:
        return "", value
    if not name_part or name_part.endswith(SCOPE_SEPARATOR):
        return value, ""
    return name_part, range_part


def is_version_contain_package_name(version: str) -> bool:
    return NAME_SEPARATOR in version


def extract_package_name(version: str) -> str:
    """Return the package name requested by an override range.

    ``"scope:real-name@^2.0.0"`` yields ``"real-name"``.
    """
    name_part, _ = _split_override(version.strip())
    return name_part.split(SCOPE_SEPARATOR, 1)[-1]


def extract_version(version: str) -> str:
    """Return the range portion of a declaration.

    ``"scope:real-name@^2.0.0"`` yields ``"^2.0.0"``; plain ranges are
    returned unchanged.
    """
    version = version.strip()
    if not is_version_contain_package_name(version):
        return version
    return _split_override(version)[1]


def get_sanitized_version(version: str) -> str:
    """Range with any ``name@`` prefix removed, ready for semver evaluation."""
    return extract_version(version)
