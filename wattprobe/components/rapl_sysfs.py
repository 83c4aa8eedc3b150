"""RAPL energy readings from the powercap sysfs interface."""

from __future__ import annotations

import logging
import os
import re

from wattprobe.components.types import NodeComponentsEnergy

logger = logging.getLogger(__name__)

_NUM_PKG_PATH = "sys/devices/system/cpu/cpu{cpu}/topology/physical_package_id"
_PACKAGE_PATH = "sys/class/powercap/intel-rapl/intel-rapl:{pkg}/"
_EVENT_PATH = "sys/class/powercap/intel-rapl/intel-rapl:{pkg}/intel-rapl:{pkg}:{event}/"
_CPUINFO_PATH = "proc/cpuinfo"

ENERGY_FILE = "energy_uj"
NUM_RAPL_EVENTS = 3

DRAM_EVENT = "dram"
CORE_EVENT = "core"
UNCORE_EVENT = "uncore"
PACKAGE_EVENT = "package"

_UINT = re.compile(r"[0-9]+")
_INT = re.compile(r"[+-]?[0-9]+")


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8", errors="replace") as handle:
        return handle.read()


def _parse_uint(text: str) -> int:
    text = text.strip()
    if not _UINT.fullmatch(text):
        raise ValueError(f"invalid unsigned integer: {text!r}")
    return int(text)


def _parse_int(text: str) -> int:
    text = text.strip()
    if not _INT.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


class PowerSysfs:
    """Power source reading RAPL counters below ``root``.

    Event directories are discovered once, when the object is created.
    ``event_paths`` maps a package name (``package-0``) to its events,
    each mapped to the directory holding its ``energy_uj`` file.
    """

    def __init__(self, root: str = "/") -> None:
        self.root = root
        self.stopped = False
        self.event_paths: dict[str, dict[str, str]] = {}
        self.detect_event_paths()

    def _path(self, relative: str) -> str:
        return os.path.join(self.root, relative)

    def get_num_cpus(self) -> int:
        """Count the processors listed in cpuinfo; 0 when it cannot be read."""
        try:
            data = _read_text(self._path(_CPUINFO_PATH))
        except OSError as exc:
            logger.debug("%s", exc)
            data = ""
        return data.count("processor")

    def get_num_package(self) -> int:
        """Count the distinct physical packages of the CPUs."""
        seen: set[int] = set()
        for cpu in range(self.get_num_cpus()):
            try:
                data = _read_text(self._path(_NUM_PKG_PATH.format(cpu=cpu)))
            except OSError:
                break
            try:
                seen.add(_parse_int(data))
            except ValueError:
                continue
        return len(seen)

    def detect_event_paths(self) -> None:
        """Discover the package and event directories of every package."""
        for pkg in range(self.get_num_package()):
            package_path = self._path(_PACKAGE_PATH.format(pkg=pkg))
            try:
                package_name = _read_text(package_path + "name").strip()
            except OSError:
                continue
            events = {package_name: package_path}
            self.event_paths[package_name] = events
            for event in range(NUM_RAPL_EVENTS):
                event_path = self._path(_EVENT_PATH.format(pkg=pkg, event=event))
                try:
                    event_name = _read_text(event_path + "name").strip()
                except OSError:
                    continue
                events[event_name] = event_path

    def has_event(self, event: str) -> bool:
        """Tell whether any package exposes an event of exactly this name."""
        return any(event in events for events in self.event_paths.values())

    def read_event_energy(self, event_name: str) -> dict[str, int]:
        """Return the energy in mJ, per package name, of events starting with ``event_name``."""
        energy: dict[str, int] = {}
        for package_name, events in self.event_paths.items():
            for event, path in events.items():
                if not event.startswith(event_name):
                    continue
                try:
                    value = _parse_uint(_read_text(path + ENERGY_FILE))
                except (OSError, ValueError) as exc:
                    logger.debug("%s", exc)
                    continue
                energy[package_name] = value // 1000
        return energy

    def get_energy(self, event: str) -> int:
        """Sum the energy in mJ of ``event`` over all packages.

        Raises ``LookupError`` when no package exposes the event.
        """
        if not self.has_event(event):
            raise LookupError(f"could not read RAPL energy for {event}")
        return sum(self.read_event_energy(event).values())

    def is_system_collection_supported(self) -> bool:
        path = self._path(_PACKAGE_PATH.format(pkg=0)) + ENERGY_FILE
        try:
            _read_text(path)
        except OSError:
            return False
        return True

    def get_energy_from_dram(self) -> int:
        return self.get_energy(DRAM_EVENT)

    def get_energy_from_core(self) -> int:
        return self.get_energy(CORE_EVENT)

    def get_energy_from_uncore(self) -> int:
        return self.get_energy(UNCORE_EVENT)

    def get_energy_from_package(self) -> int:
        return self.get_energy(PACKAGE_EVENT)

    def get_node_components_energy(self) -> dict[int, NodeComponentsEnergy]:
        """Return the component energies of every package, keyed by package number."""
        pkg_energies = self.read_event_energy(PACKAGE_EVENT)
        core_energies = self.read_event_energy(CORE_EVENT)
        dram_energies = self.read_event_energy(DRAM_EVENT)
        uncore_energies = self.read_event_energy(UNCORE_EVENT)

        result: dict[int, NodeComponentsEnergy] = {}
        for package_name, pkg_energy in pkg_energies.items():
            try:
                index = _parse_int(package_name.split("-")[-1])
            except ValueError:
                index = 0
            result[index] = NodeComponentsEnergy(
                core=core_energies.get(package_name, 0),
                dram=dram_energies.get(package_name, 0),
                uncore=uncore_energies.get(package_name, 0),
                pkg=pkg_energy,
            )
        return result

    def stop_power(self) -> None:
        """Mark the source as stopped; sysfs holds no open handles to release."""
        self.stopped = True