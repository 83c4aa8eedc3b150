"""CPU energy from the Ampere X-Gene hwmon power sensor."""

from __future__ import annotations

import glob
import logging
import time

from wattprobe.components.types import NodeComponentsEnergy

logger = logging.getLogger(__name__)

POWER_LABEL_PATTERN = "/sys/class/hwmon/hwmon*/power*_label"
CPU_POWER_LABEL = "CPU power"
UJ_TO_MJ = 1000


class ApmXgeneSysfs:
    """Power source integrating the X-Gene CPU power sensor over time."""

    def __init__(self, label_pattern: str = POWER_LABEL_PATTERN) -> None:
        self.label_pattern = label_pattern
        self.power_input_path = ""
        self.curr_time: float | None = None
        self.stopped = False

    def is_system_collection_supported(self) -> bool:
        """Find the sensor labelled as CPU power and remember its input file."""
        for label_file in sorted(glob.glob(self.label_pattern)):
            try:
                with open(label_file, encoding="utf-8", errors="replace") as handle:
                    label = handle.read()
            except OSError:
                continue
            if label.strip() == CPU_POWER_LABEL:
                self.power_input_path = label_file.replace("label", "input", 1)
                logger.info("Found power input file: %s", self.power_input_path)
                return True
        return False

    def get_energy_from_dram(self) -> int:
        return 0

    def get_energy_from_core(self) -> int:
        """Return the mJ used since the previous call; the first call gives 0.

        Raises ``OSError`` when the sensor cannot be read and ``ValueError``
        when its content is not a number.
        """
        now = time.monotonic()
        if self.curr_time is None:
            self.curr_time = now
            return 0
        seconds = now - self.curr_time
        self.curr_time = now
        with open(self.power_input_path, encoding="utf-8", errors="replace") as handle:
            power = float(handle.read().strip())
        # The sensor reports microwatts, i.e. uJ per second.
        return int(power * seconds) // UJ_TO_MJ

    def get_energy_from_uncore(self) -> int:
        return 0

    def get_energy_from_package(self) -> int:
        return 0

    def get_node_components_energy(self) -> dict[int, NodeComponentsEnergy]:
        """Return the core energy as a single socket; read failures count as 0."""
        try:
            core = self.get_energy_from_core()
        except (OSError, ValueError):
            core = 0
        dram = self.get_energy_from_dram()
        return {0: NodeComponentsEnergy(core=core, dram=dram, uncore=0, pkg=core)}

    def stop_power(self) -> None:
        """Mark the source as stopped; the sensor file is opened per reading."""
        self.stopped = True