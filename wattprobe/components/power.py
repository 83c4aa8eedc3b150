"""Choice of the power source for node components and delegation to it."""

from __future__ import annotations

import logging
from typing import Any

from wattprobe.components.apm_xgene import ApmXgeneSysfs
from wattprobe.components.estimate import PowerEstimate
from wattprobe.components.rapl_msr import PowerMSR
from wattprobe.components.rapl_sysfs import PowerSysfs
from wattprobe.components.types import NodeComponentsEnergy

logger = logging.getLogger(__name__)


class ComponentPower:
    """Reads component energy from the best available power source.

    The sysfs source is used until ``select`` picks another one.
    """

    def __init__(
        self,
        sysfs: Any = None,
        msr: Any = None,
        apm_xgene: Any = None,
        estimate: Any = None,
    ) -> None:
        self.sysfs = sysfs if sysfs is not None else PowerSysfs()
        self.msr = msr if msr is not None else PowerMSR()
        self.apm_xgene = apm_xgene if apm_xgene is not None else ApmXgeneSysfs()
        self.estimate = estimate if estimate is not None else PowerEstimate()
        self.impl: Any = self.sysfs

    def select(self, enabled_msr: bool = False) -> Any:
        """Pick sysfs, then MSR (when enabled), then X-Gene, else the estimate."""
        if self.sysfs.is_system_collection_supported():
            logger.info("use sysfs to obtain power")
            self.impl = self.sysfs
        elif self.msr.is_system_collection_supported() and enabled_msr:
            logger.info("use MSR to obtain power")
            self.impl = self.msr
        elif self.apm_xgene.is_system_collection_supported():
            logger.info("use Ampere Xgene sysfs to obtain power")
            self.impl = self.apm_xgene
        else:
            logger.info("Not able to obtain power, use estimate method")
            self.impl = self.estimate
        return self.impl

    def get_energy_from_dram(self) -> int:
        return self.impl.get_energy_from_dram()

    def get_energy_from_core(self) -> int:
        return self.impl.get_energy_from_core()

    def get_energy_from_uncore(self) -> int:
        return self.impl.get_energy_from_uncore()

    def get_energy_from_package(self) -> int:
        return self.impl.get_energy_from_package()

    def get_node_components_energy(self) -> dict[int, NodeComponentsEnergy]:
        return self.impl.get_node_components_energy()

    def is_system_collection_supported(self) -> bool:
        return self.impl.is_system_collection_supported()

    def stop_power(self) -> None:
        self.impl.stop_power()