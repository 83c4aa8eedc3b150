"""Small helpers shared across the power collectors."""

from __future__ import annotations

import enum
import os
import sys
import tempfile

SYSTEM_PROCESS_NAME = "system_processes"
SYSTEM_PROCESS_NAMESPACE = "system"

_CGROUP_MARKERS = ("pod", "containerd", "crio")


class ByteOrder(enum.Enum):
    """Byte order of multi-byte integers; the value suits ``int.from_bytes``."""

    LITTLE = "little"
    BIG = "big"


def create_temp_file(contents: str) -> str:
    """Write ``contents`` to a new temporary file and return its path."""
    with tempfile.NamedTemporaryFile("w", delete=False) as handle:
        handle.write(contents)
        return handle.name


def create_temp_dir() -> str:
    """Create a new temporary directory and return its path."""
    return tempfile.mkdtemp()


def determine_host_byte_order() -> ByteOrder:
    """Return the byte order of the running machine."""
    return ByteOrder.LITTLE if sys.byteorder == "little" else ByteOrder.BIG


def get_path_from_pid(search_path: str, pid: int) -> str:
    """Return the cgroup description line of ``pid`` that names a container.

    ``search_path`` holds a ``%d`` placeholder for the pid, for example
    ``/proc/%d/cgroup``. Raises ``OSError`` when the file cannot be opened
    and ``LookupError`` when no line refers to a pod or container runtime.
    """
    path = search_path.replace("%d", str(pid), 1)
    try:
        handle = open(path, encoding="utf-8", errors="replace")
    except OSError as exc:
        raise OSError(
            f"failed to open cgroup description file for pid {pid}: {exc}"
        ) from exc
    with handle:
        for raw in handle:
            line = raw.rstrip("\r\n")
            if any(marker in line for marker in _CGROUP_MARKERS):
                return line
    raise LookupError(f"could not find cgroup description entry for pid {pid}")