"""RAPL energy readings from the model-specific registers."""

from __future__ import annotations

import logging
import os
import re
from typing import Callable

from wattprobe.components.types import NodeComponentsEnergy
from wattprobe.utils import determine_host_byte_order

logger = logging.getLogger(__name__)

_MSR_PATH = "dev/cpu/{cpu}/msr"
_TOPOLOGY_PATH = "sys/devices/system/cpu/cpu{cpu}/topology/physical_package_id"

MSR_RAPL_POWER_UNIT = 0x606
MSR_PKG_ENERGY_STATUS = 0x611
MSR_DRAM_ENERGY_STATUS = 0x619
MSR_PP0_ENERGY_STATUS = 0x639
MSR_PP1_ENERGY_STATUS = 0x641

_INT = re.compile(r"[+-]?[0-9]+")

Reader = Callable[[int], int]


class MsrError(OSError):
    """A model-specific register could not be mapped, opened or read."""


class RaplMsr:
    """Access to the RAPL registers of every package below ``root``."""

    def __init__(self, root: str = "/", num_cpus: int | None = None) -> None:
        self.root = root
        self.num_cpus = num_cpus if num_cpus is not None else (os.cpu_count() or 1)
        self.byte_order = determine_host_byte_order()
        self.package_map: dict[int, int] = {}
        self.package_list: list[int] = []
        self.fds: list[int | None] = []
        self.power_units = 0.0
        self.time_units = 0.0
        self.cpu_energy_units: list[float] = []
        self.dram_energy_units: list[float] = []

    def map_package_and_core(self) -> None:
        """Record the package of every CPU and one core of every package."""
        self.package_map = {}
        self.package_list = []
        for cpu in range(self.num_cpus):
            path = os.path.join(self.root, _TOPOLOGY_PATH.format(cpu=cpu))
            try:
                with open(path, encoding="utf-8") as handle:
                    text = handle.read().strip()
            except OSError as exc:
                raise MsrError(f"failed to read topology {path}: {exc}") from exc
            if not _INT.fullmatch(text):
                raise MsrError(f"invalid package id in {path}: {text!r}")
            package_id = int(text)
            self.package_map[package_id] = cpu
            self.package_list.append(package_id)

    def open_all(self) -> None:
        """Open the register file of the core chosen for each package slot."""
        self.close_all()
        for package_id in range(len(self.package_list)):
            core = self.package_map.get(package_id, 0)
            path = os.path.join(self.root, _MSR_PATH.format(cpu=core))
            try:
                fd = os.open(path, os.O_RDONLY)
            except OSError as exc:
                raise MsrError(f"failed to open path {path}: {exc}") from exc
            self.fds.append(fd)

    def close_all(self) -> None:
        for fd in self.fds:
            if fd is not None:
                os.close(fd)
        self.fds = []

    def read_msr(self, package_id: int, msr: int) -> int:
        """Read the 64-bit register ``msr`` of package ``package_id``."""
        if package_id >= len(self.package_list):
            raise MsrError(
                f"package Id {package_id} greater than max package id "
                f"{len(self.package_list)}"
            )
        if package_id >= len(self.fds) or self.fds[package_id] is None:
            raise MsrError(f"no cpu core or msr found in package {package_id}")
        data = os.pread(self.fds[package_id], 8, msr)
        if len(data) != 8:
            raise MsrError(f"wrong bytes: {len(data)}")
        return int.from_bytes(data, self.byte_order.value)

    def init_units(self) -> None:
        """Map packages, open the registers and read the energy units."""
        try:
            self.map_package_and_core()
            self.open_all()
        except MsrError as exc:
            logger.debug("%s", exc)
            raise
        count = len(self.package_list)
        self.cpu_energy_units = [0.0] * count
        self.dram_energy_units = [0.0] * count
        for package_id in range(count):
            try:
                result = self.read_msr(package_id, MSR_RAPL_POWER_UNIT)
            except MsrError as exc:
                logger.debug("%s", exc)
                raise MsrError(f"failed to read power unit: {exc}") from exc
            self.power_units = 0.5 ** (result & 0xF)
            self.time_units = 0.5 ** ((result >> 16) & 0xF)
            self.cpu_energy_units[package_id] = 1 / 2 ** ((result & 0x1F00) >> 8)
            self.dram_energy_units[package_id] = 0.5 ** ((result >> 8) & 0x1F)

    def _read_scaled(
        self, package_id: int, msr: int, units: list[float], scale: int, label: str
    ) -> int:
        try:
            result = self.read_msr(package_id, msr)
        except MsrError as exc:
            raise MsrError(f"failed to read {label} energy: {exc}") from exc
        return int(units[package_id] * result * scale)

    def read_pkg_power(self, package_id: int) -> int:
        return self._read_scaled(
            package_id, MSR_PKG_ENERGY_STATUS, self.cpu_energy_units, 1, "pkg"
        )

    def read_core_power(self, package_id: int) -> int:
        return self._read_scaled(
            package_id, MSR_PP0_ENERGY_STATUS, self.cpu_energy_units, 1000, "pp0"
        )

    def read_uncore_power(self, package_id: int) -> int:
        return self._read_scaled(
            package_id, MSR_PP1_ENERGY_STATUS, self.cpu_energy_units, 1000, "pp1"
        )

    def read_dram_power(self, package_id: int) -> int:
        return self._read_scaled(
            package_id, MSR_DRAM_ENERGY_STATUS, self.dram_energy_units, 1000, "dram"
        )

    def read_all_power(self, reader: Reader) -> int:
        """Sum ``reader`` over every package slot; any failure propagates."""
        return sum(reader(package_id) for package_id in range(len(self.package_list)))

    def get_rapl_energy(
        self,
        core_func: Reader,
        dram_func: Reader,
        uncore_func: Reader,
        pkg_func: Reader,
    ) -> dict[int, NodeComponentsEnergy]:
        """Return the component energies per package slot; failed reads count as 0."""

        def attempt(func: Reader, package_id: int) -> int:
            try:
                return func(package_id)
            except (MsrError, IndexError):
                return 0

        return {
            package_id: NodeComponentsEnergy(
                core=attempt(core_func, package_id),
                dram=attempt(dram_func, package_id),
                uncore=attempt(uncore_func, package_id),
                pkg=attempt(pkg_func, package_id),
            )
            for package_id in range(len(self.package_list))
        }


class PowerMSR:
    """Power source reading RAPL energy straight from the registers."""

    def __init__(self, msr: RaplMsr | None = None) -> None:
        self.msr = msr if msr is not None else RaplMsr()

    def is_system_collection_supported(self) -> bool:
        try:
            self.msr.init_units()
        except MsrError:
            return False
        return True

    def get_energy_from_dram(self) -> int:
        return self.msr.read_all_power(self.msr.read_dram_power)

    def get_energy_from_core(self) -> int:
        return self.msr.read_all_power(self.msr.read_core_power)

    def get_energy_from_uncore(self) -> int:
        return self.msr.read_all_power(self.msr.read_uncore_power)

    def get_energy_from_package(self) -> int:
        return self.msr.read_all_power(self.msr.read_pkg_power)

    def get_node_components_energy(self) -> dict[int, NodeComponentsEnergy]:
        msr = self.msr
        return msr.get_rapl_energy(
            msr.read_core_power,
            msr.read_dram_power,
            msr.read_uncore_power,
            msr.read_pkg_power,
        )

    def stop_power(self) -> None:
        self.msr.close_all()