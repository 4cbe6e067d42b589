"""Tests for OS notification delivery."""

from unittest.mock import patch

from clipkeeper.notifications import DesktopNotifier, SoundMode, send_notification


class TestSendNotification:
    """Tests for send_notification()."""

    @patch("clipkeeper.notifications.platform.system", return_value="Darwin")
    @patch("clipkeeper.notifications.subprocess.run")
    def test_macos_calls_osascript(self, mock_run, _mock_sys):
        send_notification("Title", "Body")

        mock_run.assert_called_once()
        args = mock_run.call_args
        assert args[0][0][0] == "osascript"
        assert args[0][0][1] == "-e"
        assert 'display notification "Body" with title "Title"' in args[0][0][2]
        assert 'sound name "default"' in args[0][0][2]

    @patch("clipkeeper.notifications.platform.system", return_value="Darwin")
    @patch("clipkeeper.notifications.subprocess.run")
    def test_macos_beep(self, mock_run, _mock_sys):
        send_notification("Title", "Body", sound=SoundMode.BEEP)

        script = mock_run.call_args[0][0][2]
        assert 'sound name "Ping"' in script

    @patch("clipkeeper.notifications.platform.system", return_value="Darwin")
    @patch("clipkeeper.notifications.subprocess.run")
    def test_macos_silent(self, mock_run, _mock_sys):
        send_notification("Title", "Body", sound=SoundMode.SILENT)

        script = mock_run.call_args[0][0][2]
        assert "sound name" not in script

    @patch("clipkeeper.notifications.platform.system", return_value="Darwin")
    @patch("clipkeeper.notifications.subprocess.run")
    def test_macos_escapes_quotes(self, mock_run, _mock_sys):
        send_notification('Say "hello"', 'Image saved: "odd".png')

        script = mock_run.call_args[0][0][2]
        assert '\\"hello\\"' in script
        assert '\\"odd\\"' in script

    @patch("clipkeeper.notifications.platform.system", return_value="Windows")
    @patch("clipkeeper.notifications.subprocess.run")
    def test_windows_calls_powershell(self, mock_run, _mock_sys):
        send_notification("Title", "Body")

        mock_run.assert_called_once()
        args = mock_run.call_args
        assert args[0][0][0] == "powershell"
        assert "silent" not in args[0][0][2]

    @patch("clipkeeper.notifications.platform.system", return_value="Windows")
    @patch("clipkeeper.notifications.subprocess.run")
    def test_windows_silent(self, mock_run, _mock_sys):
        send_notification("Title", "Body", sound=SoundMode.SILENT)

        assert "SetAttribute('silent', 'true')" in mock_run.call_args[0][0][2]

    @patch("clipkeeper.notifications.platform.system", return_value="Windows")
    @patch("clipkeeper.notifications.subprocess.run")
    def test_windows_escapes_single_quotes(self, mock_run, _mock_sys):
        send_notification("Title", "It's saved")

        assert "It''s saved" in mock_run.call_args[0][0][2]

    @patch("clipkeeper.notifications.platform.system", return_value="Linux")
    @patch("clipkeeper.notifications.subprocess.run")
    def test_unsupported_platform_no_error(self, mock_run, _mock_sys):
        send_notification("Title", "Body")
        mock_run.assert_not_called()

    @patch("clipkeeper.notifications.platform.system", return_value="Darwin")
    @patch("clipkeeper.notifications.subprocess.run", side_effect=OSError("fail"))
    def test_exception_is_swallowed(self, mock_run, _mock_sys):
        # Should not raise
        send_notification("Title", "Body")


class TestDesktopNotifier:
    """Tests for DesktopNotifier."""

    @patch("clipkeeper.notifications.threading.Thread")
    def test_sends_on_daemon_thread(self, mock_thread):
        DesktopNotifier().notify("ClipKeeper", "Image saved: a.png", SoundMode.BEEP)

        kwargs = mock_thread.call_args.kwargs
        assert kwargs["target"] is send_notification
        assert kwargs["args"] == ("ClipKeeper", "Image saved: a.png", SoundMode.BEEP)
        assert kwargs["daemon"] is True
        mock_thread.return_value.start.assert_called_once()
