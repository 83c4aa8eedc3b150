"""Node energy and power readings from RAPL, MSR, hwmon, ACPI and accelerator sources."""

__version__ = "0.1.0"