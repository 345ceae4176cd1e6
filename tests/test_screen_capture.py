from PIL import Image

from capture_assistant.screen_capture import ScreenCapturer


def test_injected_backend_is_used():
    capturer = ScreenCapturer(backend=lambda: "frame")
    assert capturer.is_supported()
    assert capturer.grab() == "frame"


def test_save_writes_png(tmp_path):
    capturer = ScreenCapturer(backend=lambda: None)
    path = capturer.save(Image.new("RGB", (4, 4)), tmp_path / "shots", prefix="test")
    assert path.parent == tmp_path / "shots"
    assert path.name.startswith("test_") and path.suffix == ".png"
    with Image.open(path) as image:
        assert image.size == (4, 4)
