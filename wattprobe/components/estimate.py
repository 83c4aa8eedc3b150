"""Energy estimated from core count, memory size and nominal power figures."""

from __future__ import annotations

import os
import re
import time

from wattprobe.components.types import NodeComponentsEnergy

MEMINFO_PATH = "/proc/meminfo"

# Anchored at the start of the text only, as in /proc/meminfo where MemTotal leads.
_DRAM_PATTERN = re.compile(r"MemTotal:\s+([0-9]+)")


def get_dram(meminfo_path: str = MEMINFO_PATH) -> int:
    """Return the total memory in whole gigabytes, read from a meminfo file.

    Raises ``OSError`` when the file cannot be read and ``LookupError``
    when it does not start with a ``MemTotal`` entry.
    """
    with open(meminfo_path, encoding="utf-8", errors="replace") as handle:
        text = handle.read()
    match = _DRAM_PATTERN.match(text)
    if match is None:
        raise LookupError("no memory info found")
    return int(match.group(1).strip()) // (1024 * 1024)


class PowerEstimate:
    """Power source that estimates energy when no measurement is available.

    Energy grows linearly with the time since creation or since the last
    ``stop_power`` call.
    """

    def __init__(
        self,
        cpu_cores: int | None = None,
        dram_in_gb: int = 0,
        per_thread_min_power: float = 0.0,
        per_thread_max_power: float = 0.0,
        per_gb_power: float = 0.0,
    ) -> None:
        self.cpu_cores = cpu_cores if cpu_cores is not None else (os.cpu_count() or 1)
        self.dram_in_gb = dram_in_gb
        self.per_thread_min_power = per_thread_min_power
        self.per_thread_max_power = per_thread_max_power
        self.per_gb_power = per_gb_power
        self.start_time = time.monotonic()

    def _elapsed(self) -> float:
        return time.monotonic() - self.start_time

    def is_system_collection_supported(self) -> bool:
        return False

    def stop_power(self) -> None:
        self.start_time = time.monotonic()

    def get_energy_from_dram(self) -> int:
        seconds = self._elapsed()
        return int(self.dram_in_gb * self.per_gb_power * seconds) * 1000 // 3600

    def get_energy_from_core(self) -> int:
        seconds = self._elapsed()
        average = (self.per_thread_min_power + self.per_thread_max_power) / 2
        return int(self.cpu_cores * seconds * average) * 1000 // 3600

    def get_energy_from_uncore(self) -> int:
        return 0

    def get_energy_from_package(self) -> int:
        return self.get_energy_from_core()

    def get_node_components_energy(self) -> dict[int, NodeComponentsEnergy]:
        """Return the estimate as a single socket."""
        core = self.get_energy_from_core()
        dram = self.get_energy_from_dram()
        return {0: NodeComponentsEnergy(core=core, dram=dram, uncore=0, pkg=core)}