"""Tests for audio capture sources and their registry."""

import threading
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from streaming_benchmark.audio.capture import (
    AudioSource,
    MicrophoneSource,
    WavFileSource,
    get_audio_source,
)
from streaming_benchmark.audio.wav_utils import write_wav_samples
from streaming_benchmark.utils.errors import CaptureError


@pytest.fixture()
def wav_path(tmp_path: Path) -> str:
    path = tmp_path / "speech.wav"
    write_wav_samples(str(path), np.full(5000, 0.25, dtype=np.float32))
    return str(path)


class _Collector:
    def __init__(self) -> None:
        self.bursts: list[np.ndarray] = []
        self._lock = threading.Lock()

    def __call__(self, samples: np.ndarray) -> None:
        with self._lock:
            self.bursts.append(samples)

    @property
    def total(self) -> int:
        return sum(len(b) for b in self.bursts)


class TestWavFileSource:
    """Tests for WAV replay."""

    def test_delivers_whole_file_in_bursts(self, wav_path: str) -> None:
        source = WavFileSource(wav_path, burst_samples=1024, realtime=False)
        collector = _Collector()
        source.start(collector)
        assert source.wait_finished(timeout=5.0)
        source.stop()
        assert collector.total == 5000
        assert source.samples_delivered == 5000
        assert [len(b) for b in collector.bursts[:4]] == [1024] * 4
        assert collector.bursts[0].dtype == np.float32

    def test_loop_keeps_delivering_until_stopped(self, wav_path: str) -> None:
        source = WavFileSource(wav_path, burst_samples=1000, realtime=False, loop=True)
        enough = threading.Event()

        def _on_samples(samples: np.ndarray) -> None:
            if source.samples_delivered >= 12000:
                enough.set()

        source.start(_on_samples)
        assert enough.wait(timeout=5.0)
        source.stop()
        assert source.samples_delivered > 5000
        assert source.is_running is False

    def test_realtime_stop_interrupts_pacing(self, wav_path: str) -> None:
        source = WavFileSource(wav_path, burst_samples=16000, realtime=True, loop=True)
        source.start(_Collector())
        assert source.is_running is True
        duration = source.stop()
        assert duration >= 0.0
        assert source.is_running is False

    def test_callback_errors_do_not_stop_replay(self, wav_path: str) -> None:
        source = WavFileSource(wav_path, burst_samples=1000, realtime=False)

        def _explode(samples: np.ndarray) -> None:
            raise RuntimeError("consumer bug")

        source.start(_explode)
        assert source.wait_finished(timeout=5.0)
        source.stop()
        assert source.samples_delivered == 5000

    def test_unreadable_file_raises_capture_error(self, tmp_path: Path) -> None:
        bogus = tmp_path / "bogus.wav"
        bogus.write_bytes(b"not a wav")
        source = WavFileSource(str(bogus), realtime=False)
        with pytest.raises(CaptureError) as exc_info:
            source.start(_Collector())
        assert exc_info.value.detail is not None
        assert source.is_running is False

    def test_permission_granted(self, wav_path: str, tmp_path: Path) -> None:
        assert WavFileSource(wav_path).permission_granted() is True
        assert WavFileSource(str(tmp_path / "missing.wav")).permission_granted() is False

    def test_stop_when_not_started(self, wav_path: str) -> None:
        assert WavFileSource(wav_path).stop() == 0.0

    def test_invalid_burst_size(self, wav_path: str) -> None:
        with pytest.raises(ValueError):
            WavFileSource(wav_path, burst_samples=0)


def _fake_sounddevice() -> MagicMock:
    fake = MagicMock()
    fake.PortAudioError = type("PortAudioError", (Exception,), {})
    return fake


class TestMicrophoneSource:
    """Tests for the sounddevice-backed microphone source."""

    def test_start_opens_stream(self) -> None:
        fake = _fake_sounddevice()
        source = MicrophoneSource(sample_rate=16000, device=3)
        with patch("streaming_benchmark.audio.capture.microphone._sounddevice", return_value=fake):
            source.start(_Collector())
            assert source.is_running is True
            source.stop()

        kwargs = fake.InputStream.call_args.kwargs
        assert kwargs["samplerate"] == 16000
        assert kwargs["device"] == 3
        assert kwargs["dtype"] == "float32"
        fake.InputStream.return_value.start.assert_called_once()
        fake.InputStream.return_value.close.assert_called_once()
        assert source.is_running is False

    def test_callback_mixes_and_resamples(self) -> None:
        fake = _fake_sounddevice()
        collector = _Collector()
        source = MicrophoneSource(sample_rate=16000, channels=2, capture_rate=48000)
        with patch("streaming_benchmark.audio.capture.microphone._sounddevice", return_value=fake):
            source.start(collector)
            callback = fake.InputStream.call_args.kwargs["callback"]
            block = np.column_stack(
                [np.full(4800, 0.5, dtype=np.float32), np.zeros(4800, dtype=np.float32)]
            )
            callback(block, 4800, None, None)
            source.stop()

        assert len(collector.bursts) == 1
        assert len(collector.bursts[0]) == 1600
        np.testing.assert_allclose(collector.bursts[0], 0.25, atol=1e-6)

    def test_status_flags_are_counted(self) -> None:
        fake = _fake_sounddevice()
        source = MicrophoneSource()
        with patch("streaming_benchmark.audio.capture.microphone._sounddevice", return_value=fake):
            source.start(_Collector())
            callback = fake.InputStream.call_args.kwargs["callback"]
            callback(np.zeros((160, 1), dtype=np.float32), 160, None, "input overflow")
            source.stop()
        assert source.status_errors == 1

    def test_open_failure_raises_capture_error(self) -> None:
        fake = _fake_sounddevice()
        fake.InputStream.side_effect = fake.PortAudioError("Invalid device")
        source = MicrophoneSource()
        with patch("streaming_benchmark.audio.capture.microphone._sounddevice", return_value=fake):
            with pytest.raises(CaptureError) as exc_info:
                source.start(_Collector())
        assert "Invalid device" in exc_info.value.detail
        assert source.is_running is False

    def test_missing_portaudio(self) -> None:
        source = MicrophoneSource()
        missing = CaptureError("PortAudio library not available", detail="not found")
        with patch(
            "streaming_benchmark.audio.capture.microphone._sounddevice", side_effect=missing
        ):
            assert source.permission_granted() is False
            with pytest.raises(CaptureError):
                source.start(_Collector())

    def test_permission_denied_by_device_check(self) -> None:
        fake = _fake_sounddevice()
        fake.check_input_settings.side_effect = fake.PortAudioError("Permission denied")
        with patch("streaming_benchmark.audio.capture.microphone._sounddevice", return_value=fake):
            assert MicrophoneSource().permission_granted() is False

    def test_permission_granted(self) -> None:
        fake = _fake_sounddevice()
        with patch("streaming_benchmark.audio.capture.microphone._sounddevice", return_value=fake):
            assert MicrophoneSource().permission_granted() is True


class TestAudioSourceRegistry:
    """Tests for provider lookup."""

    def test_creates_wav_source(self, wav_path: str) -> None:
        source = get_audio_source("wav", path=wav_path, realtime=False)
        assert isinstance(source, WavFileSource)
        assert isinstance(source, AudioSource)

    def test_creates_microphone_source(self) -> None:
        assert isinstance(get_audio_source("microphone"), MicrophoneSource)

    def test_unknown_provider(self) -> None:
        with pytest.raises(CaptureError, match="Unknown audio source: 'line-in'"):
            get_audio_source("line-in")
