from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

BlockHandler = Callable[[bytes, float], None]


def to_mono_pcm16(indata: np.ndarray) -> Tuple[bytes, float]:
    """
    Convert sounddevice callback 'indata' into mono PCM16 little-endian bytes.
    Uses the first channel only.
    Returns (pcm_bytes, rms_float_0_1).
    """
    x = np.asarray(indata)

    if x.ndim == 2 and x.shape[1] >= 1:
        mono = x[:, 0]
    else:
        mono = x.reshape(-1)

    if mono.dtype == np.int16:
        f = mono.astype(np.float32) / 32768.0
    else:
        f = mono.astype(np.float32)

    f = np.clip(f, -1.0, 1.0)
    pcm16 = (f * 32767.0).astype("<i2").tobytes(order="C")
    rms = float(np.sqrt(np.mean(f * f))) if f.size else 0.0
    return pcm16, rms


def _default_input_index(sd) -> Optional[int]:
    try:
        index = int(sd.default.device[0])
    except (TypeError, ValueError, IndexError):
        return None
    return index if index >= 0 else None


def list_input_devices(selected: Optional[Union[int, str]] = None) -> Dict[str, Any]:
    """
    Input devices the microphone can open, with the system default and the
    configured AUDIO_DEVICE flagged. A missing PortAudio is reported as ok=False.
    """
    try:
        import sounddevice as sd

        devices = sd.query_devices()
        default_index = _default_input_index(sd)
    except Exception as e:
        logger.warning("[AUDIO] cannot list devices: %s", e)
        return {"ok": False, "error": str(e), "default": None, "devices": []}

    inputs = []
    for index, info in enumerate(devices):
        channels = int(info.get("max_input_channels", 0))
        if channels <= 0:
            continue
        name = info.get("name") or f"Device {index}"
        inputs.append({
            "index": index,
            "name": name,
            "channels": channels,
            "samplerate": int(info.get("default_samplerate") or 0),
            "is_default": index == default_index,
            "selected": selected is not None and selected in (index, name),
        })

    return {"ok": True, "default": default_index, "devices": inputs}


class MicrophoneCapture:
    """
    Microphone input stream.

    open() acquires the device (raises on permission/device errors),
    start() begins delivering (pcm16, rms) blocks to the handler from the
    PortAudio thread, close() releases the device.
    """

    def __init__(
        self,
        device: Optional[Union[int, str]] = None,
        sample_rate: int = 16000,
        blocksize: int = 4096,
    ) -> None:
        self.device = device
        self.sample_rate = int(sample_rate)
        self.blocksize = int(blocksize)
        self._stream = None
        self._handler: Optional[BlockHandler] = None

    def open(self) -> None:
        # sounddevice loads PortAudio on import; only the capture path needs it
        import sounddevice as sd

        self._stream = sd.InputStream(
            device=self.device,
            samplerate=self.sample_rate,
            channels=1,
            dtype="float32",
            blocksize=self.blocksize,
            callback=self._audio_cb,
        )
        logger.info("[AUDIO] microphone opened device=%s sr=%d bs=%d", self.device, self.sample_rate, self.blocksize)

    def start(self, handler: BlockHandler) -> None:
        if self._stream is None:
            raise RuntimeError("Microphone is not open")
        self._handler = handler
        self._stream.start()

    def _audio_cb(self, indata, frames, time_info, status):
        if status:
            logger.debug("[AUDIO] sd_status: %s", status)
        handler = self._handler
        if handler is None:
            return
        pcm16, rms = to_mono_pcm16(indata)
        handler(pcm16, rms)

    def close(self) -> None:
        self._handler = None
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info("[AUDIO] microphone released")
