# wattprobe

wattprobe is a library that reads energy and power figures for a Linux node.
It uses whatever sources the machine offers. All energy values are in
millijoules. Per-socket figures come back as a `dict` that maps a socket
number to a `NodeComponentsEnergy` record with `core`, `dram`, `uncore` and
`pkg` fields.

## Sources

- **RAPL over sysfs**: `wattprobe.components.rapl_sysfs.PowerSysfs(root="/")`.
  When created, it finds the package and event directories under
  `sys/class/powercap/intel-rapl` and reads their `energy_uj` counters.
  `get_energy(event)` raises `LookupError` when no package exposes the event.
- **RAPL over MSR**: `wattprobe.components.rapl_msr.PowerMSR(msr)`, built on
  `RaplMsr(root="/", num_cpus=None)`. It reads the `dev/cpu/N/msr` registers.
  A register that cannot be mapped, opened or read raises `MsrError`, which is
  a subclass of `OSError`. `is_system_collection_supported()` calls
  `init_units()`, which opens the register files. `stop_power()` closes them.
- **Ampere X-Gene hwmon**: `wattprobe.components.apm_xgene.ApmXgeneSysfs`.
  It looks for the hwmon sensor labelled `CPU power` and integrates its input
  over time. The first call to `get_energy_from_core()` returns 0. Each later
  call returns the energy used since the previous call.
- **Estimation**: `wattprobe.components.estimate.PowerEstimate(cpu_cores,
  dram_in_gb, per_thread_min_power, per_thread_max_power, per_gb_power)`.
  Energy grows linearly from creation time, or from the last `stop_power()`.
  All power figures default to 0, so pass real values to get a non-zero
  estimate. `get_dram(meminfo_path)` reads the total memory in whole GB from a
  meminfo file.
- **Fixed values**: `wattprobe.components.types.PowerDummy(supported=False)`
  always returns the same readings: package 8, core 5, DRAM 1, uncore 0.
  It is meant for tests.

## Choosing a component source

`ComponentPower` uses the sysfs source until you call `select`. `select` picks
the first supported source in this order: sysfs, then MSR (only when
`enabled_msr` is true), then X-Gene, and falls back to the estimate. It returns
the source it picked.

```python
from wattprobe.components.power import ComponentPower
from wattprobe.components.rapl_sysfs import PowerSysfs
from wattprobe.components.rapl_msr import PowerMSR, RaplMsr
from wattprobe.components.apm_xgene import ApmXgeneSysfs
from wattprobe.components.estimate import PowerEstimate

power = ComponentPower(PowerSysfs(), PowerMSR(RaplMsr()), ApmXgeneSysfs(), PowerEstimate())
power.select(enabled_msr=False)

for socket, energy in power.get_node_components_energy().items():
    print(socket, energy)   # e.g. "0 Pkg: 1200 (Core: 800, Uncore: 0) DRAM: 150"
power.stop_power()
```

## Platform power through ACPI

`wattprobe.acpi.ACPI` first tries the hwmon path
`/sys/class/hwmon/hwmon2/device/`. If that has no sensor, it searches
`/sys/devices/LNXSYSTM:00` for `power*_average` files. `run(ebpf_enabled)`
starts a daemon thread that samples the sensors every `interval` seconds
(3 by default) and adds up the energy. When `ebpf_enabled` is false, the
thread also reads the cpufreq policy frequencies.

```python
from wattprobe.acpi import ACPI

meter = ACPI()
meter.run(ebpf_enabled=False)
# ... later
print(meter.get_energy_from_host())    # {"energy1": mJ, ...}; counters reset on read
print(meter.get_cpu_core_frequency())  # {policy number: kHz}
meter.stop()
```

The module-level helpers `find_acpi_power_path`, `get_cpu_core_frequency` and
`get_power_from_sensor` can also be called directly.

## Accelerators

`wattprobe.accelerator.power.Accelerator(candidates, enabled_gpu=False)` calls
`init()` on each candidate source in turn and keeps the first one that
succeeds. `Accelerator.init()` raises `AcceleratorError` when none of them
started. Readings are only passed through when `enabled_gpu` is true;
otherwise the methods return empty results. The only GPU source included is
`wattprobe.accelerator.sources.GPUDummy`. It reports one placeholder device
and a fixed 10 % utilisation sample (`ProcessUtilizationSample`) for pid 0.

## Helpers

`wattprobe.utils` provides:

- `determine_host_byte_order()`, which returns a `ByteOrder` value.
- `create_temp_file(contents)` and `create_temp_dir()`.
- `get_path_from_pid(search_path, pid)`. It returns the cgroup line that
  mentions a pod, containerd or crio. `search_path` holds a `%d` placeholder
  for the pid.

## What it does not do

wattprobe is a library only. It has:

- no command-line program;
- no metrics exporter or HTTP endpoint;
- no eBPF-based collection;
- no GPU source backed by a vendor library. Only the stand-in `GPUDummy` is
  included, and other sources can be passed to `Accelerator`.

Reading the real RAPL, MSR and hwmon files usually needs root and a Linux
host.

## Installation

```
pip install .
```

With the test tools:

```
pip install .[test]
```

There are no runtime dependencies. wattprobe requires Python 3.10 or later.

## Testing

```
pytest
```