[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wattprobe"
version = "0.1.0"
description = "Read node energy and power from RAPL sysfs, RAPL MSR, X-Gene hwmon and ACPI sensors, with an estimation fallback"
requires-python = ">=3.10"
dependencies = []
keywords = ["power", "energy", "rapl", "msr", "acpi", "hwmon", "monitoring"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wattprobe"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
