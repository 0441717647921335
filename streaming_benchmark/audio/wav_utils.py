"""WAV I/O helpers for mono float32 audio.

Samples are handled as 1-D float32 numpy arrays in [-1.0, 1.0]. WAV
files on disk (and payloads sent to HTTP engines) are 16-bit PCM.
"""

import io
import wave

import numpy as np

SAMPLE_RATE = 16000
SAMPLE_WIDTH = 2  # 16-bit = 2 bytes
NUM_CHANNELS = 1

_INT16_SCALE = 32768.0


def pcm16_to_float32(raw: bytes, channels: int = 1) -> np.ndarray:
    """Convert interleaved 16-bit PCM bytes to mono float32 samples.

    Multi-channel input is mixed down by averaging channels.
    """
    samples = np.frombuffer(raw, dtype="<i2").astype(np.float32) / _INT16_SCALE
    if channels > 1:
        usable = len(samples) - len(samples) % channels
        samples = samples[:usable].reshape(-1, channels).mean(axis=1)
    return samples.astype(np.float32, copy=False)


def float32_to_pcm16(samples: np.ndarray) -> bytes:
    """Clamp float samples to [-1, 1] and quantize to little-endian int16."""
    clipped = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    return (clipped * 32767.0).astype("<i2").tobytes()


def resample_linear(samples: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """Resample with linear interpolation (adequate for speech benchmarks)."""
    if source_rate == target_rate or len(samples) == 0:
        return np.asarray(samples, dtype=np.float32)
    target_len = int(round(len(samples) * target_rate / source_rate))
    positions = np.linspace(0, len(samples) - 1, num=target_len)
    return np.interp(positions, np.arange(len(samples)), samples).astype(np.float32)


def read_wav_samples(wav_path: str, target_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Read a 16-bit PCM WAV file as mono float32 at ``target_rate``.

    Args:
        wav_path: Path to the WAV file.
        target_rate: Output sample rate; other rates are resampled.

    Returns:
        1-D float32 array.

    Raises:
        ValueError: If the WAV file cannot be read or is not 16-bit PCM.
    """
    try:
        with wave.open(wav_path, "rb") as wf:
            if wf.getsampwidth() != SAMPLE_WIDTH:
                raise ValueError(
                    f"Unsupported sample width {wf.getsampwidth()} in {wav_path}"
                )
            channels = wf.getnchannels()
            rate = wf.getframerate()
            raw_data = wf.readframes(wf.getnframes())
    except (OSError, EOFError, wave.Error) as exc:
        raise ValueError(f"Failed to read WAV file: {wav_path}") from exc

    samples = pcm16_to_float32(raw_data, channels)
    return resample_linear(samples, rate, target_rate)


def encode_wav(samples: np.ndarray, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Encode float32 samples as a complete mono 16-bit WAV file in memory."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(NUM_CHANNELS)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(sample_rate)
        wf.writeframes(float32_to_pcm16(samples))
    return buf.getvalue()


def write_wav_samples(
    output_path: str, samples: np.ndarray, sample_rate: int = SAMPLE_RATE
) -> None:
    """Write float32 samples to a mono 16-bit WAV file.

    Args:
        output_path: Path for the output WAV file.
        samples: 1-D float32 samples.
        sample_rate: Sample rate in Hz (default 16000).
    """
    with open(output_path, "wb") as f:
        f.write(encode_wav(samples, sample_rate))
