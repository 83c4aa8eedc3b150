import dataclasses

import pytest

from wattprobe.components.types import NodeComponentsEnergy, PowerDummy


def test_node_components_energy_str():
    energy = NodeComponentsEnergy(core=11, dram=22, uncore=33, pkg=44)
    assert str(energy) == "Pkg: 44 (Core: 11, Uncore: 33) DRAM: 22"


def test_node_components_energy_is_frozen():
    energy = NodeComponentsEnergy(core=1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        energy.core = 2
    assert energy.core == 1
    assert energy == NodeComponentsEnergy(core=1)


def test_node_components_energy_defaults_equal_explicit_zero():
    assert NodeComponentsEnergy() == NodeComponentsEnergy(core=0, dram=0, uncore=0, pkg=0)


def test_dummy_supported_flag():
    assert PowerDummy().is_system_collection_supported() is False
    assert PowerDummy(supported=True).is_system_collection_supported() is True


def test_dummy_fixed_readings():
    dummy = PowerDummy()
    readings = (
        dummy.get_energy_from_dram(),
        dummy.get_energy_from_core(),
        dummy.get_energy_from_uncore(),
        dummy.get_energy_from_package(),
    )
    assert readings == (1, 5, 0, 8)


def test_dummy_node_components_match_readings():
    dummy = PowerDummy()
    energies = dummy.get_node_components_energy()
    assert list(energies) == [0]
    socket = energies[0]
    assert socket.core == dummy.get_energy_from_core()
    assert socket.dram == dummy.get_energy_from_dram()
    assert socket.pkg == dummy.get_energy_from_package()
    assert socket.uncore == dummy.get_energy_from_uncore()


def test_dummy_stop_keeps_readings():
    dummy = PowerDummy(supported=True)
    before = dummy.get_node_components_energy()
    dummy.stop_power()
    assert dummy.get_node_components_energy() == before
    assert dummy.is_system_collection_supported() is True