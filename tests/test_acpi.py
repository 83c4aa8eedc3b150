import time

import pytest

from wattprobe.acpi import (
    ACPI,
    find_acpi_power_path,
    get_cpu_core_frequency,
    get_power_from_sensor,
)


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


def test_find_acpi_power_path_finds_average_file(tmp_path):
    root = tmp_path / "LNXSYSTM_00"
    _write(root / "ACPI000D_00" / "power1_average", "100\n")
    result = find_acpi_power_path(str(root))
    assert result == str(root / "ACPI000D_00") + "/"


def test_find_acpi_power_path_skips_excluded_dirs(tmp_path):
    root = tmp_path / "root"
    _write(root / "power" / "power1_average", "1")
    _write(root / "wakeup7" / "power1_average", "1")
    _write(root / "PNP0C0A" / "power1_average", "1")
    assert find_acpi_power_path(str(root)) == ""


def test_find_acpi_power_path_missing_root(tmp_path):
    assert find_acpi_power_path(str(tmp_path / "missing")) == ""


def test_get_cpu_core_frequency(tmp_path):
    _write(tmp_path / "policy0" / "scaling_cur_freq", "1200000\n")
    _write(tmp_path / "policy1" / "scaling_cur_freq", "garbage\n")
    (tmp_path / "policy2").mkdir()
    assert get_cpu_core_frequency(str(tmp_path)) == {0: 1200000, 1: 0}


def test_get_cpu_core_frequency_missing_dir(tmp_path):
    assert get_cpu_core_frequency(str(tmp_path / "nope")) == {}


def test_get_power_from_sensor(tmp_path):
    _write(tmp_path / "power1_average", "1000\n")
    _write(tmp_path / "power2_average", "2500\n")
    _write(tmp_path / "power4_average", "9000\n")
    result = get_power_from_sensor(str(tmp_path) + "/", 4)
    assert result == {"energy1": 1.0, "energy2": 2.5}


def test_get_power_from_sensor_bad_value(tmp_path):
    _write(tmp_path / "power1_average", "abc")
    with pytest.raises(ValueError):
        get_power_from_sensor(str(tmp_path) + "/", 2)


def test_get_power_from_sensor_limited_by_cpu_count(tmp_path):
    _write(tmp_path / "power1_average", "1000")
    _write(tmp_path / "power2_average", "1000")
    assert list(get_power_from_sensor(str(tmp_path) + "/", 1)) == ["energy1"]


def test_acpi_uses_hwmon_path_when_supported(tmp_path):
    hwmon = tmp_path / "hwmon"
    _write(hwmon / "power1_average", "1000")
    meter = ACPI(power_path=str(hwmon) + "/", acpi_root=str(tmp_path / "missing"))
    assert meter.is_power_supported() is True
    assert meter.collect_energy is True
    assert meter.power_path == str(hwmon) + "/"


def test_acpi_falls_back_to_acpi_tree(tmp_path):
    root = tmp_path / "acpi"
    _write(root / "ACPI000D_00" / "power1_average", "1000")
    meter = ACPI(power_path=str(tmp_path / "none") + "/", acpi_root=str(root))
    assert meter.collect_energy is True
    assert meter.power_path == str(root / "ACPI000D_00") + "/"
    assert meter.is_power_supported() is True


def test_acpi_without_meter(tmp_path):
    meter = ACPI(
        power_path=str(tmp_path / "none") + "/", acpi_root=str(tmp_path / "missing")
    )
    assert meter.collect_energy is False
    assert meter.is_power_supported() is False
    assert meter.get_energy_from_host() == {}


def test_acpi_run_collects_energy_and_frequency(tmp_path):
    sensors = tmp_path / "sensors"
    _write(sensors / "power1_average", "5000000")
    freq = tmp_path / "cpufreq"
    _write(freq / "policy0" / "scaling_cur_freq", "1800000")
    meter = ACPI(
        power_path=str(sensors) + "/",
        acpi_root=str(tmp_path / "missing"),
        freq_dir=str(freq),
        num_cpus=2,
        interval=0.01,
    )
    meter.run(False)
    total = 0.0
    deadline = time.monotonic() + 5
    try:
        while time.monotonic() < deadline:
            total += sum(meter.get_energy_from_host().values())
            if total > 0 and meter.get_cpu_core_frequency():
                break
            time.sleep(0.01)
    finally:
        meter.stop()
    assert total > 0
    assert meter.get_cpu_core_frequency() == {0: 1800000}
    meter.get_energy_from_host()
    assert meter.get_energy_from_host() == {"energy1": 0.0}


def test_acpi_run_disables_on_bad_sensor(tmp_path):
    sensors = tmp_path / "sensors"
    _write(sensors / "power1_average", "abc")
    meter = ACPI(
        power_path=str(sensors) + "/",
        acpi_root=str(tmp_path / "missing"),
        freq_dir=str(tmp_path / "nofreq"),
        interval=0.01,
    )
    assert meter.collect_energy is True
    meter.run(True)
    deadline = time.monotonic() + 5
    while meter.collect_energy and time.monotonic() < deadline:
        time.sleep(0.01)
    meter.stop()
    assert meter.collect_energy is False
    assert meter.get_energy_from_host() == {}
    assert meter.get_cpu_core_frequency() == {}