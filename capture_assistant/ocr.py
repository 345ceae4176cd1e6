"""Text recognition for screen captures, backed by OpenVINO."""

from __future__ import annotations

import logging
import os
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import numpy as np

try:  # pragma: no cover - optional dependency
    import openvino.runtime as ov  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    ov = None  # type: ignore

try:  # pragma: no cover - optional dependency
    from PIL import Image  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    Image = None  # type: ignore

logger = logging.getLogger(__name__)

# Anything that turns an image into text can stand in for the OpenVINO model.
TextRecognizer = Callable[[Any], str]

_MODEL_BASE_URL = os.getenv(
    "CAPTURE_ASSISTANT_OCR_MODEL_URL",
    "https://storage.openvinotoolkit.org/repositories/open_model_zoo/2023.2/models_bin/1/"
    "text-recognition-0014/FP16/text-recognition-0014",
)
_DEFAULT_ALPHABET = (
    "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
    " ,.:-_/\\()[]{}@#%&+*=;!?\"'|<>"
)


@dataclass(slots=True)
class OcrConfig:
    """Where the recognition model lives and how to run it."""

    model_path: Path
    device: str = "CPU"
    alphabet: str = _DEFAULT_ALPHABET
    blank_id: int = 0

    @classmethod
    def from_env(cls) -> "OcrConfig":
        explicit = os.getenv("CAPTURE_ASSISTANT_OCR_MODEL")
        if explicit:
            model_path = Path(explicit).expanduser()
        else:
            model_dir = Path(os.getenv("CAPTURE_ASSISTANT_MODEL_DIR", "models")).expanduser()
            model_path = model_dir / "ocr" / "text-recognition-0014.xml"
        return cls(
            model_path=model_path,
            device=os.getenv("CAPTURE_ASSISTANT_OCR_DEVICE", "CPU"),
            alphabet=os.getenv("CAPTURE_ASSISTANT_OCR_ALPHABET", _DEFAULT_ALPHABET),
            blank_id=int(os.getenv("CAPTURE_ASSISTANT_OCR_BLANK_ID", "0")),
        )


def _fetch(url: str, destination: Path) -> None:
    logger.info("Downloading OCR model file %s", url)
    with urllib.request.urlopen(url) as response:
        payload = response.read()
    if not payload:
        raise RuntimeError(f"Downloaded file is empty: {url}")
    if destination.suffix == ".xml" and not payload.lstrip().startswith(b"<?xml"):
        raise RuntimeError(f"Downloaded model description is not XML: {url}")
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(payload)


def ensure_model(model_path: Path) -> None:
    """Download the IR pair next to ``model_path`` when it is missing."""

    for suffix in (".xml", ".bin"):
        target = model_path.with_suffix(suffix)
        if target.exists():
            continue
        try:
            _fetch(_MODEL_BASE_URL + suffix, target)
        except Exception:
            target.unlink(missing_ok=True)
            raise


def ctc_greedy_decode(logits: np.ndarray, alphabet: str, blank_id: int = 0) -> str:
    """Collapse repeated ids and blanks from a CTC output into text."""

    if logits.ndim == 3:
        ids = logits.argmax(axis=2)[0]
    elif logits.ndim == 2:
        ids = logits.argmax(axis=1)
    else:
        raise ValueError(f"Unsupported logits shape: {logits.shape}")
    decoded: list[str] = []
    previous: Optional[int] = None
    for raw_id in ids:
        token = int(raw_id)
        if token != blank_id and token != previous and 0 <= token < len(alphabet):
            decoded.append(alphabet[token])
        previous = None if token == blank_id else token
    return "".join(decoded)


class OpenVINOTextRecognizer:
    """Callable recognizer wrapping an OpenVINO text-recognition network."""

    def __init__(self, config: OcrConfig) -> None:
        if ov is None:
            raise RuntimeError("OpenVINO runtime is not installed")
        if Image is None:
            raise RuntimeError("Pillow is required for OCR")
        ensure_model(config.model_path)
        self.config = config
        core = ov.Core()
        self._compiled = core.compile_model(core.read_model(str(config.model_path)), config.device)
        self._input = self._compiled.input(0)
        self._output = self._compiled.output(0)
        shape = list(self._input.shape)  # type: ignore[call-arg]
        if len(shape) != 4:
            raise ValueError(f"Unsupported recognition model input shape: {shape}")
        _, self._channels, self._height, self._width = shape

    def __call__(self, image: Any) -> str:
        picture = image if isinstance(image, Image.Image) else Image.fromarray(np.asarray(image))
        picture = picture.convert("L" if self._channels == 1 else "RGB")
        array = np.asarray(picture.resize((self._width, self._height)), dtype=np.float32) / 255.0
        array = array[np.newaxis, :, :] if self._channels == 1 else np.transpose(array, (2, 0, 1))
        logits = self._compiled({self._input: array[np.newaxis, ...]})[self._output]
        return ctc_greedy_decode(logits, self.config.alphabet, self.config.blank_id).strip()


_RECOGNIZER: Optional[TextRecognizer] = None
_RECOGNIZER_FAILED = False


def default_recognizer() -> Optional[TextRecognizer]:
    """Load the OpenVINO recognizer once; ``None`` when it cannot be loaded."""

    global _RECOGNIZER, _RECOGNIZER_FAILED
    if _RECOGNIZER_FAILED:
        return None
    if _RECOGNIZER is None:
        config = OcrConfig.from_env()
        try:
            _RECOGNIZER = OpenVINOTextRecognizer(config)
            logger.info("Loaded OCR model from %s", config.model_path)
        except Exception as exc:  # pragma: no cover - runtime safeguard
            logger.warning("OCR disabled: %s", exc)
            _RECOGNIZER_FAILED = True
            return None
    return _RECOGNIZER


def extract_text(image: Any, recognizer: Optional[TextRecognizer] = None) -> str:
    """Recognise text in ``image``; returns an empty string when OCR is unavailable."""

    if image is None:
        return ""
    recognizer = recognizer or default_recognizer()
    if recognizer is None:
        return ""
    try:
        return recognizer(image)
    except Exception as exc:  # pragma: no cover - runtime safeguard
        logger.warning("OCR inference failed: %s", exc)
        return ""
