"""Grab the screen as an in-memory image for OCR."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

try:  # pragma: no cover - optional dependency
    import mss  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    mss = None  # type: ignore

try:  # pragma: no cover - optional dependency
    from PIL import Image, ImageGrab  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    Image = None  # type: ignore
    ImageGrab = None  # type: ignore

GrabBackend = Callable[[], Any]


class ScreenCapturer:
    """Captures one monitor with mss, falling back to Pillow's ImageGrab."""

    def __init__(self, *, monitor_index: int = 1, backend: Optional[GrabBackend] = None) -> None:
        self.monitor_index = monitor_index
        self._backend = backend or self._select_backend()

    def is_supported(self) -> bool:
        return self._backend is not None

    def grab(self) -> Any:
        """Return the current screen as a PIL image, or ``None`` on failure."""

        if self._backend is None:
            logger.warning("Screen capture backend is not available.")
            return None
        try:
            return self._backend()
        except Exception as exc:  # pragma: no cover - runtime safeguard
            logger.exception("Screen capture failed: %s", exc)
            return None

    def save(self, image: Any, output_dir: Path | str = "captures", *, prefix: str = "capture") -> Path:
        directory = Path(output_dir)
        directory.mkdir(parents=True, exist_ok=True)
        destination = directory / f"{prefix}_{datetime.utcnow():%Y%m%d_%H%M%S_%f}.png"
        image.save(destination, format="PNG")
        logger.info("Saved capture to %s", destination)
        return destination

    def _select_backend(self) -> Optional[GrabBackend]:
        if mss is not None and Image is not None:
            return self._grab_with_mss
        if ImageGrab is not None:
            return ImageGrab.grab
        return None

    def _grab_with_mss(self) -> Any:
        assert mss is not None and Image is not None  # for type checkers
        with mss.mss() as sct:
            monitors = sct.monitors
            index = min(max(self.monitor_index, 1), len(monitors) - 1)
            shot = sct.grab(monitors[index])
            return Image.frombytes("RGB", shot.size, shot.rgb)
