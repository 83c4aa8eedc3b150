"""Access to the GPU power source chosen at start-up."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from wattprobe.accelerator.sources import GPUDummy, ProcessUtilizationSample

logger = logging.getLogger(__name__)


class AcceleratorError(RuntimeError):
    """The GPU collector could not be started."""


class Accelerator:
    """Front for the first GPU source that starts successfully.

    Each candidate's ``init`` is tried in order; the first that does not
    raise is used. When all fail, the last one is kept and its failure is
    reported by ``init``. Readings are only taken when ``enabled_gpu`` is set.
    """

    def __init__(
        self, candidates: Iterable[Any] | None = None, enabled_gpu: bool = False
    ) -> None:
        self.enabled_gpu = enabled_gpu
        self.impl: Any = None
        self._error: AcceleratorError | None = AcceleratorError(
            "could not start accelerator collector"
        )
        sources = list(candidates) if candidates is not None else [GPUDummy()]
        for source in sources:
            self.impl = source
            try:
                source.init()
            except Exception as exc:  # a source may fail in any way while loading
                logger.info("Failed to init %s: %s", type(source).__name__, exc)
                error = AcceleratorError(
                    f"failed to init {type(source).__name__}: {exc}"
                )
                error.__cause__ = exc
                self._error = error
                continue
            self._error = None
            break

    @property
    def _active(self) -> bool:
        return self.impl is not None and self.enabled_gpu

    def init(self) -> None:
        """Raise ``AcceleratorError`` when no GPU source could be started."""
        if self._error is not None:
            raise self._error

    def shutdown(self) -> bool:
        if self._active:
            return self.impl.shutdown()
        return True

    def get_gpus(self) -> list[Any]:
        if self._active:
            return self.impl.get_gpus()
        return []

    def get_gpu_energy_per_gpu(self) -> list[int]:
        if self._active:
            return self.impl.get_gpu_energy_per_gpu()
        return []

    def get_process_resource_utilization_per_device(
        self, device: Any, since: Any
    ) -> dict[int, ProcessUtilizationSample]:
        """Return GPU utilisation per pid on ``device``.

        When the collector is inactive, returns an empty mapping, or raises
        ``AcceleratorError`` if it failed to start.
        """
        if self._active:
            return self.impl.get_process_resource_utilization_per_device(device, since)
        if self._error is not None:
            raise self._error
        return {}

    def is_gpu_collection_supported(self) -> bool:
        if self._active:
            return self.impl.is_gpu_collection_supported()
        return False

    def set_gpu_collection_supported(self, supported: bool) -> None:
        if self._active:
            self.impl.set_gpu_collection_supported(supported)