"""System user and group lookups."""

from __future__ import annotations

import grp
import pwd

from .errors import IdentityResolutionError


def lookup_uid(owner: str) -> int:
    """Resolve a user name to its numeric id.

    Args:
        owner: User name from the system user database

    Returns:
        Numeric user id
    """
    try:
        return pwd.getpwnam(owner).pw_uid
    except KeyError as exc:
        raise IdentityResolutionError(f"Cannot find owner's UID - unknown user {owner!r}") from exc


def lookup_gid(group: str) -> int:
    """Resolve a group name to its numeric id.

    Args:
        group: Group name from the system group database

    Returns:
        Numeric group id
    """
    try:
        return grp.getgrnam(group).gr_gid
    except KeyError as exc:
        raise IdentityResolutionError(f"Cannot find group's GID - unknown group {group!r}") from exc
