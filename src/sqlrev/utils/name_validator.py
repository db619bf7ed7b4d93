"""Name validation utilities for sqlrev.

Branch names may use slashes for grouping (``feature/orders``). Connection
ids become directory names in the file store, so they are held to a stricter
pattern that rules out path traversal.
"""

import re

from sqlrev.errors import InvalidNameError


VALID_BRANCH_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._/\-]*$")

VALID_CONNECTION_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_\-]*$")

MAX_NAME_LENGTH = 128


def validate_branch_name(name: str) -> None:
    """Validate that a branch name is usable.

    Valid names must:
    - Start with a letter or number
    - Contain only letters, numbers, dot, slash, dash and underscore
    - Not contain ``..``, ``//`` or end with a slash or ``.lock``

    Args:
        name: Branch name to validate

    Raises:
        InvalidNameError: If the name is invalid
    """
    if not name:
        raise InvalidNameError("Branch name cannot be empty")

    if len(name) > MAX_NAME_LENGTH:
        raise InvalidNameError(
            f"Branch name cannot exceed {MAX_NAME_LENGTH} characters"
        )

    if not VALID_BRANCH_NAME_PATTERN.match(name):
        raise InvalidNameError(
            f"Invalid branch name '{name}'. Names must start with a letter or "
            f"number and contain only letters, numbers, '.', '/', '-' and '_'."
        )

    if ".." in name or "//" in name or name.endswith("/") or name.endswith(".lock"):
        raise InvalidNameError(f"Invalid branch name '{name}'")


def validate_connection_id(connection_id: str) -> None:
    """Validate a connection id before it is used as a storage key.

    Args:
        connection_id: Connection identifier

    Raises:
        InvalidNameError: If the id is empty or could escape a storage directory
    """
    if not connection_id:
        raise InvalidNameError("Connection id cannot be empty")

    if len(connection_id) > MAX_NAME_LENGTH:
        raise InvalidNameError(
            f"Connection id cannot exceed {MAX_NAME_LENGTH} characters"
        )

    # Critical: Check for path traversal attempts
    if ".." in connection_id or "/" in connection_id or "\\" in connection_id:
        raise InvalidNameError(
            f"Security violation: connection id '{connection_id}' contains "
            f"forbidden path traversal characters"
        )

    if not VALID_CONNECTION_ID_PATTERN.match(connection_id):
        raise InvalidNameError(
            f"Invalid connection id '{connection_id}'. Ids must contain only "
            f"letters, numbers, dash (-) and underscore (_)."
        )


def is_valid_branch_name(name: str) -> bool:
    """Check if a branch name is valid without raising an exception."""
    try:
        validate_branch_name(name)
        return True
    except InvalidNameError:
        return False
