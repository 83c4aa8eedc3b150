"""Platform power and CPU frequency readings from ACPI and hwmon sysfs files."""

from __future__ import annotations

import logging
import os
import re
import threading

logger = logging.getLogger(__name__)

FREQ_PATH_DIR = "/sys/devices/system/cpu/cpufreq/"
HWMON_POWER_PATH = "/sys/class/hwmon/hwmon2/device/"
ACPI_POWER_PATH = "/sys/devices/LNXSYSTM:00"
ACPI_POWER_FILE_PREFIX = "power"
ACPI_POWER_FILE_SUFFIX = "_average"
POLLING_INTERVAL = 3.0
SENSOR_ID_PREFIX = "energy"

_SKIP_MARKERS = ("INTL", "PNP", "input", "device:", "wakeup")
_UINT = re.compile(r"[0-9]+")


def _parse_uint(text: str) -> int:
    text = text.strip()
    if not _UINT.fullmatch(text):
        raise ValueError(f"invalid unsigned integer: {text!r}")
    return int(text)


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8", errors="replace") as handle:
        return handle.read()


def _skip_dir(name: str) -> bool:
    return name == "power" or any(marker in name for marker in _SKIP_MARKERS)


def _walk_for_power_file(path: str) -> str:
    """Return the directory (with trailing separator) of the last power average file."""
    found = ""
    with os.scandir(path) as entries:
        ordered = sorted(entries, key=lambda entry: entry.name)
    for entry in ordered:
        if entry.is_dir(follow_symlinks=False):
            if _skip_dir(entry.name):
                continue
            below = _walk_for_power_file(entry.path)
            if below:
                found = below
        elif ACPI_POWER_FILE_SUFFIX in entry.name:
            found = entry.path[: len(entry.path) - len(entry.name)]
    return found


def find_acpi_power_path(root: str = ACPI_POWER_PATH) -> str:
    """Search ``root`` for a power average file and return its directory.

    Returns an empty string when the tree cannot be read or holds no such file.
    """
    if _skip_dir(os.path.basename(os.path.normpath(root))):
        return ""
    try:
        return _walk_for_power_file(root)
    except OSError as exc:
        logger.debug("Could not find any ACPI power meter path: %s", exc)
        return ""


def get_cpu_core_frequency(freq_dir: str = FREQ_PATH_DIR) -> dict[int, int]:
    """Return the current frequency of every cpufreq policy, keyed by policy number.

    Unreadable policies are left out; unparsable values count as 0.
    """
    try:
        count = len(os.listdir(freq_dir))
    except OSError as exc:
        logger.warning("%s", exc)
        return {}
    frequencies: dict[int, int] = {}
    for policy in range(count):
        path = os.path.join(freq_dir, f"policy{policy}", "scaling_cur_freq")
        try:
            data = _read_text(path)
        except OSError:
            continue
        try:
            frequencies[policy] = _parse_uint(data)
        except ValueError:
            frequencies[policy] = 0
    return frequencies


def get_power_from_sensor(power_path: str, num_cpus: int) -> dict[str, float]:
    """Read the power sensors below ``power_path`` in milliwatts.

    Sensors are numbered from 1 and read until one is missing. Raises
    ``ValueError`` when a sensor holds something other than an integer.
    """
    power: dict[str, float] = {}
    for index in range(1, num_cpus + 1):
        path = f"{power_path}{ACPI_POWER_FILE_PREFIX}{index}{ACPI_POWER_FILE_SUFFIX}"
        try:
            data = _read_text(path)
        except OSError:
            break
        # The sensor reports microwatts.
        power[f"{SENSOR_ID_PREFIX}{index}"] = _parse_uint(data) / 1000
    return power


class ACPI:
    """Power meter accumulating platform energy from ACPI power sensors.

    ``run`` starts a background thread sampling the sensors (and the CPU
    frequencies when eBPF cannot provide them) every ``interval`` seconds.
    """

    def __init__(
        self,
        power_path: str = HWMON_POWER_PATH,
        acpi_root: str = ACPI_POWER_PATH,
        freq_dir: str = FREQ_PATH_DIR,
        num_cpus: int | None = None,
        interval: float = POLLING_INTERVAL,
    ) -> None:
        self.power_path = power_path
        self.freq_dir = freq_dir
        self.num_cpus = num_cpus if num_cpus is not None else (os.cpu_count() or 1)
        self.interval = interval
        self.collect_energy = False
        self._system_energy: dict[str, float] = {}
        self._cpu_core_frequency: dict[int, int] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

        if self.is_power_supported():
            self.collect_energy = True
            logger.debug("Using the HWMON power meter path: %s", self.power_path)
        else:
            self.power_path = find_acpi_power_path(acpi_root)
            if self.power_path:
                self.collect_energy = True
                logger.debug("Using the ACPI power meter path: %s", self.power_path)
            else:
                logger.info("Could not find any ACPI power meter path. Is it a VM?")

    def _sample(self, ebpf_enabled: bool) -> bool:
        """Take one sample; return False when there is nothing left to collect."""
        if not ebpf_enabled:
            frequencies = get_cpu_core_frequency(self.freq_dir)
            with self._lock:
                self._cpu_core_frequency.update(frequencies)

        if self.collect_energy:
            try:
                sensor_power = get_power_from_sensor(self.power_path, self.num_cpus)
            except ValueError:
                logger.info(
                    "Disabling the ACPI power meter collection. "
                    "This might be related to a kernel bug."
                )
                self.collect_energy = False
            else:
                with self._lock:
                    for sensor_id, milliwatts in sensor_power.items():
                        self._system_energy[sensor_id] = (
                            self._system_energy.get(sensor_id, 0.0)
                            + milliwatts * self.interval
                        )

        return not (ebpf_enabled and not self.collect_energy)

    def _loop(self, ebpf_enabled: bool) -> None:
        while not self._stop_event.is_set():
            if not self._sample(ebpf_enabled):
                return
            self._stop_event.wait(self.interval)

    def run(self, ebpf_enabled: bool) -> None:
        """Start sampling in a background thread."""
        self._thread = threading.Thread(
            target=self._loop, args=(ebpf_enabled,), daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop sampling and wait for the background thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()

    def get_cpu_core_frequency(self) -> dict[int, int]:
        """Return a copy of the last sampled frequency of every CPU policy."""
        with self._lock:
            return dict(self._cpu_core_frequency)

    def is_power_supported(self) -> bool:
        path = f"{self.power_path}{ACPI_POWER_FILE_PREFIX}1{ACPI_POWER_FILE_SUFFIX}"
        try:
            _read_text(path)
        except OSError:
            return False
        return True

    def get_energy_from_host(self) -> dict[str, float]:
        """Return the energy in mJ accumulated per sensor and reset the counters."""
        with self._lock:
            energy = dict(self._system_energy)
            for sensor_id in self._system_energy:
                self._system_energy[sensor_id] = 0.0
        return energy