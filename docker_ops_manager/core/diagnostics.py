"""Turn docker error output into actionable hints.

Hints are advisory only: a failed command keeps its real exit code, and
the hint is attached to the error for display.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple


@dataclass
class ErrorHint:
    """A recognised failure with suggestions for fixing it."""
    kind: str
    message: str
    suggestions: List[str] = field(default_factory=list)


# Checked in order; the first match wins
_PATTERNS: List[Tuple[Pattern, ErrorHint]] = [
    (
        re.compile(r"port is already allocated|address already in use|bind: address", re.IGNORECASE),
        ErrorHint(
            kind="port_conflict",
            message="A port required by the container is already in use",
            suggestions=[
                "Find the process holding the port with 'lsof -i :<port>' or 'docker ps'",
                "Change the published port in the config file",
            ],
        ),
    ),
    (
        re.compile(r"permission denied", re.IGNORECASE),
        ErrorHint(
            kind="permission_denied",
            message="Docker refused the operation due to missing permissions",
            suggestions=[
                "Add your user to the 'docker' group and log in again",
                "Check ownership of mounted volume paths",
            ],
        ),
    ),
    (
        re.compile(r"pull access denied|manifest unknown|manifest for .* not found|"
                   r"repository does not exist|no such image|image .* not found", re.IGNORECASE),
        ErrorHint(
            kind="image_not_found",
            message="The image could not be found",
            suggestions=[
                "Check the image name and tag in the config file",
                "Log in to the registry with 'docker login' if the image is private",
            ],
        ),
    ),
    (
        re.compile(r"unauthorized|authentication required", re.IGNORECASE),
        ErrorHint(
            kind="unauthorized",
            message="The registry rejected the credentials",
            suggestions=["Run 'docker login' for the registry hosting the image"],
        ),
    ),
    (
        re.compile(r"i/o timeout|tls handshake timeout|context deadline exceeded|"
                   r"network is unreachable|temporary failure in name resolution", re.IGNORECASE),
        ErrorHint(
            kind="network_timeout",
            message="A network operation timed out",
            suggestions=[
                "Check your internet connection and proxy settings",
                "Retry the operation",
            ],
        ),
    ),
    (
        re.compile(r"no space left on device", re.IGNORECASE),
        ErrorHint(
            kind="disk_full",
            message="The Docker host is out of disk space",
            suggestions=["Free space with 'docker-ops cleanup --prune'"],
        ),
    ),
    (
        re.compile(r"out of memory|cannot allocate memory|\boomkilled\b", re.IGNORECASE),
        ErrorHint(
            kind="out_of_memory",
            message="The container ran out of memory",
            suggestions=["Lower the container's memory use or raise the host limit"],
        ),
    ),
    (
        re.compile(r"network .* not found", re.IGNORECASE),
        ErrorHint(
            kind="network_not_found",
            message="A network referenced by the container does not exist",
            suggestions=["Create it with 'docker network create <name>'"],
        ),
    ),
    (
        re.compile(r"volume .* not found|no such volume", re.IGNORECASE),
        ErrorHint(
            kind="volume_not_found",
            message="A volume referenced by the container does not exist",
            suggestions=["Create it with 'docker volume create <name>'"],
        ),
    ),
]


def diagnose(output: Optional[str]) -> Optional[ErrorHint]:
    """Return the hint for the first known failure pattern in output."""
    if not output:
        return None
    for pattern, hint in _PATTERNS:
        if pattern.search(output):
            return hint
    return None
