from wattprobe.components.estimate import PowerEstimate
from wattprobe.components.power import ComponentPower
from wattprobe.components.types import NodeComponentsEnergy, PowerDummy


class _Counting(PowerDummy):
    def __init__(self, supported: bool = False) -> None:
        super().__init__(supported)
        self.checks = 0
        self.stopped = False

    def is_system_collection_supported(self) -> bool:
        self.checks += 1
        return super().is_system_collection_supported()

    def stop_power(self) -> None:
        self.stopped = True


def _power(sysfs=False, msr=False, apm=False):
    return ComponentPower(
        sysfs=_Counting(sysfs),
        msr=_Counting(msr),
        apm_xgene=_Counting(apm),
        estimate=PowerEstimate(cpu_cores=1),
    )


def test_defaults_to_sysfs_before_select():
    power = _power()
    assert power.impl is power.sysfs


def test_sysfs_preferred():
    power = _power(sysfs=True, msr=True, apm=True)
    assert power.select(enabled_msr=True) is power.sysfs
    assert power.msr.checks == 0


def test_msr_when_enabled():
    power = _power(msr=True, apm=True)
    assert power.select(enabled_msr=True) is power.msr


def test_msr_skipped_when_disabled():
    power = _power(msr=True, apm=True)
    assert power.select(enabled_msr=False) is power.apm_xgene
    assert power.msr.checks == 1


def test_falls_back_to_estimate():
    power = _power()
    assert power.select() is power.estimate
    assert power.is_system_collection_supported() is False


def test_delegates_readings():
    power = _power(sysfs=True)
    power.select()
    assert power.get_energy_from_package() == 8
    assert power.get_energy_from_core() == 5
    assert power.get_energy_from_dram() == 1
    assert power.get_energy_from_uncore() == 0
    assert power.get_node_components_energy() == {
        0: NodeComponentsEnergy(pkg=8, core=5, dram=1)
    }
    assert power.is_system_collection_supported() is True


def test_stop_power_reaches_selected_source():
    power = _power(msr=True)
    power.select(enabled_msr=True)
    power.stop_power()
    assert power.msr.stopped is True
    assert power.sysfs.stopped is False