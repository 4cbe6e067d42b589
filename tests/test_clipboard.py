"""Tests for clipboard access."""

from unittest.mock import Mock, patch

import pytest
from PIL import Image

from clipkeeper.capture.clipboard import PillowClipboard
from clipkeeper.capture.protocols import ClipboardReader, ConfirmationPrompt, Notifier
from clipkeeper.errors import ClipboardAccessFault
from clipkeeper.notifications import DesktopNotifier
from clipkeeper.ui.confirm import TkConfirmationPrompt


class TestPillowClipboard:
    """Tests for PillowClipboard.read_image()."""

    def setup_method(self):
        """Set up test fixtures."""
        self.clipboard = PillowClipboard()

    @patch("clipkeeper.capture.clipboard.ImageGrab.grabclipboard")
    def test_returns_image(self, mock_grab):
        source = Image.new("RGB", (5, 3), "blue")
        mock_grab.return_value = source

        image = self.clipboard.read_image()

        assert isinstance(image, Image.Image)
        assert image is not source
        assert image.size == (5, 3)
        assert image.getpixel((0, 0)) == (0, 0, 255)

    @patch("clipkeeper.capture.clipboard.ImageGrab.grabclipboard", return_value=None)
    def test_empty_clipboard(self, _mock_grab):
        assert self.clipboard.read_image() is None

    @patch("clipkeeper.capture.clipboard.ImageGrab.grabclipboard")
    def test_file_list_is_not_an_image(self, mock_grab):
        mock_grab.return_value = ["/tmp/a.png", "/tmp/b.png"]

        assert self.clipboard.read_image() is None

    @patch(
        "clipkeeper.capture.clipboard.ImageGrab.grabclipboard",
        side_effect=OSError("clipboard locked"),
    )
    def test_access_failure(self, _mock_grab):
        with pytest.raises(ClipboardAccessFault):
            self.clipboard.read_image()

    @patch("clipkeeper.capture.clipboard.ImageGrab.grabclipboard")
    def test_decode_failure(self, mock_grab):
        broken = Mock(spec=Image.Image)
        broken.load.side_effect = OSError("truncated")
        mock_grab.return_value = broken

        with pytest.raises(ClipboardAccessFault):
            self.clipboard.read_image()


class TestCollaboratorProtocols:
    """The shipped collaborators satisfy the pipeline's protocols."""

    def test_clipboard_reader(self):
        assert isinstance(PillowClipboard(), ClipboardReader)

    def test_notifier(self):
        assert isinstance(DesktopNotifier(), Notifier)

    def test_confirmation_prompt(self):
        assert isinstance(TkConfirmationPrompt(), ConfirmationPrompt)
