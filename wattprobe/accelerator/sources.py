"""Per-process GPU utilisation records and a stand-in GPU source."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ProcessUtilizationSample:
    """GPU utilisation of one process on one device."""

    pid: int
    time_stamp: int
    sm_util: int
    mem_util: int
    enc_util: int
    dec_util: int


@dataclass(frozen=True)
class _DummyDevice:
    """Placeholder for a GPU device handle."""


class GPUDummy:
    """GPU source used when no real GPU library is available."""

    def __init__(self) -> None:
        self.collection_supported = False

    def init(self) -> None:
        self.collection_supported = False

    def shutdown(self) -> bool:
        return True

    def get_gpu_energy_per_gpu(self) -> list[int]:
        return []

    def get_gpus(self) -> list[Any]:
        return [_DummyDevice()]

    def get_process_resource_utilization_per_device(
        self, device: Any, since: Any
    ) -> dict[int, ProcessUtilizationSample]:
        sample = ProcessUtilizationSample(
            pid=0,
            time_stamp=time.time_ns(),
            sm_util=10,
            mem_util=10,
            enc_util=10,
            dec_util=10,
        )
        return {0: sample}

    def is_gpu_collection_supported(self) -> bool:
        return self.collection_supported

    def set_gpu_collection_supported(self, supported: bool) -> None:
        self.collection_supported = supported