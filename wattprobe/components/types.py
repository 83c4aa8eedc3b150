"""Energy record per RAPL component and a fixed-value power source."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NodeComponentsEnergy:
    """Energy per RAPL component of one socket, in millijoules."""

    core: int = 0
    dram: int = 0
    uncore: int = 0
    pkg: int = 0

    def __str__(self) -> str:
        return (
            f"Pkg: {self.pkg} (Core: {self.core}, Uncore: {self.uncore}) "
            f"DRAM: {self.dram}"
        )


class PowerDummy:
    """Power source returning fixed readings, for tests and dry runs."""

    def __init__(self, supported: bool = False) -> None:
        self.supported = supported
        self.stopped = False

    def is_system_collection_supported(self) -> bool:
        return self.supported

    def stop_power(self) -> None:
        """Mark the source as stopped; readings stay fixed."""
        self.stopped = True

    def get_energy_from_dram(self) -> int:
        return 1

    def get_energy_from_core(self) -> int:
        return 5

    def get_energy_from_uncore(self) -> int:
        return 0

    def get_energy_from_package(self) -> int:
        return 8

    def get_node_components_energy(self) -> dict[int, NodeComponentsEnergy]:
        return {0: NodeComponentsEnergy(pkg=8, core=5, dram=1)}