"""Host description attached to benchmark reports."""

from __future__ import annotations

import logging
import platform
from dataclasses import asdict, dataclass

import psutil

from streaming_benchmark.metrics.models import ComputeUnit

logger = logging.getLogger(__name__)

_DEVICE_UNITS: dict[str, ComputeUnit] = {
    "cuda": ComputeUnit.GPU,
    "mps": ComputeUnit.GPU,
    "rocm": ComputeUnit.GPU,
    "ane": ComputeUnit.NEURAL_ENGINE,
    "coreml": ComputeUnit.NEURAL_ENGINE,
    "cpu": ComputeUnit.CPU,
}


@dataclass(frozen=True)
class SystemInfo:
    """Machine description recorded alongside the results."""

    machine_model: str
    chip_name: str
    ram_gb: int
    os_version: str

    @property
    def display_string(self) -> str:
        return f"{self.machine_model} ({self.ram_gb}GB RAM), {self.os_version}"

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def _chip_name() -> str:
    processor = platform.processor()
    if processor and processor != platform.machine():
        return processor
    # Linux often reports an empty processor string
    try:
        with open("/proc/cpuinfo", encoding="utf-8") as cpuinfo:
            for line in cpuinfo:
                if line.startswith("model name"):
                    return line.split(":", 1)[1].strip()
    except OSError:
        pass
    return processor or platform.machine() or "Unknown"


def _os_version() -> str:
    system = platform.system()
    if system == "Darwin":
        release = platform.mac_ver()[0]
        return f"macOS {release}" if release else "macOS"
    if system == "Linux":
        try:
            release = platform.freedesktop_os_release()
            return release.get("PRETTY_NAME", f"Linux {platform.release()}")
        except OSError:
            return f"Linux {platform.release()}"
    return f"{system} {platform.release()}".strip()


def collect_system_info() -> SystemInfo:
    """Describe the current host.

    Returns:
        SystemInfo with machine, chip, RAM (GB, rounded) and OS version.
    """
    ram_gb = round(psutil.virtual_memory().total / (1024**3))
    info = SystemInfo(
        machine_model=platform.node() or platform.machine() or "Unknown",
        chip_name=_chip_name(),
        ram_gb=ram_gb,
        os_version=_os_version(),
    )
    logger.debug("System info: %s", info.display_string)
    return info


def detect_compute_unit(model_name: str, device: str | None) -> ComputeUnit:
    """Map an engine's device string to the compute unit it runs on.

    Args:
        model_name: Model under test (used for log context only).
        device: Device reported by the engine, e.g. "cuda", "cpu",
            "cuda:1". "auto" or None means the engine did not say.

    Returns:
        The matching ComputeUnit, or UNKNOWN.
    """
    if not device:
        return ComputeUnit.UNKNOWN
    unit = _DEVICE_UNITS.get(device.split(":", 1)[0].lower(), ComputeUnit.UNKNOWN)
    if unit is ComputeUnit.UNKNOWN:
        logger.debug("No compute unit for device %r", device, extra={"model": model_name})
    return unit
