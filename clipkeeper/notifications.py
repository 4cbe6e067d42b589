"""Native OS notifications for ClipKeeper."""

import logging
import platform
import subprocess
import threading
from enum import Enum

logger = logging.getLogger(__name__)

__all__ = ["SoundMode", "send_notification", "DesktopNotifier"]

APP_TITLE = "ClipKeeper"


class SoundMode(str, Enum):
    """How a notification should sound. Playback is left to the OS."""

    BEEP = "beep"
    DEFAULT_SOUND = "default_sound"
    SILENT = "silent"


# macOS notification sound names
_MACOS_SOUNDS = {
    SoundMode.BEEP: "Ping",
    SoundMode.DEFAULT_SOUND: "default",
}


def send_notification(
    title: str, message: str, sound: SoundMode = SoundMode.DEFAULT_SOUND
) -> None:
    """Send a native OS notification.

    Args:
        title: Notification title.
        message: Notification body text.
        sound: Requested sound (macOS only; Windows toasts use the system default).
    """
    system = platform.system()
    try:
        if system == "Darwin":
            _send_macos(title, message, sound)
        elif system == "Windows":
            _send_windows(title, message, sound)
        else:
            logger.debug(f"Notifications not supported on {system}")
    except Exception as e:
        logger.debug(f"Failed to send notification: {e}")


def _send_macos(title: str, message: str, sound: SoundMode) -> None:
    """Send notification via osascript on macOS."""
    # Escape double quotes and backslashes for AppleScript string literals.
    safe_title = title.replace("\\", "\\\\").replace('"', '\\"')
    safe_message = message.replace("\\", "\\\\").replace('"', '\\"')

    sound_name = _MACOS_SOUNDS.get(sound)
    sound_clause = f' sound name "{sound_name}"' if sound_name else ""
    script = (
        f'display notification "{safe_message}" '
        f'with title "{safe_title}"{sound_clause}'
    )
    subprocess.run(
        ["osascript", "-e", script],
        capture_output=True,
        timeout=5,
    )


def _send_windows(title: str, message: str, sound: SoundMode) -> None:
    """Send toast notification via PowerShell on Windows."""
    # Escape single quotes for PowerShell string literals.
    safe_title = title.replace("'", "''")
    safe_message = message.replace("'", "''")

    audio_clause = ""
    if sound is SoundMode.SILENT:
        audio_clause = (
            "$audio = $template.CreateElement('audio'); "
            "$audio.SetAttribute('silent', 'true'); "
            "$template.DocumentElement.AppendChild($audio) > $null; "
        )

    ps_script = (
        "[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, "
        "ContentType = WindowsRuntime] > $null; "
        "$template = [Windows.UI.Notifications.ToastNotificationManager]::"
        "GetTemplateContent([Windows.UI.Notifications.ToastTemplateType]::ToastText02); "
        "$textNodes = $template.GetElementsByTagName('text'); "
        f"$textNodes.Item(0).AppendChild($template.CreateTextNode('{safe_title}')) > $null; "
        f"$textNodes.Item(1).AppendChild($template.CreateTextNode('{safe_message}')) > $null; "
        f"{audio_clause}"
        "$toast = [Windows.UI.Notifications.ToastNotification]::new($template); "
        "[Windows.UI.Notifications.ToastNotificationManager]::"
        f"CreateToastNotifier('{APP_TITLE}').Show($toast)"
    )
    subprocess.run(
        ["powershell", "-Command", ps_script],
        capture_output=True,
        timeout=10,
    )


class DesktopNotifier:
    """Notifier that never blocks the caller.

    Each notification is delivered from a daemon thread, since the OS helpers
    can take seconds to return.
    """

    def notify(
        self, title: str, message: str, sound: SoundMode = SoundMode.DEFAULT_SOUND
    ) -> None:
        threading.Thread(
            target=send_notification,
            args=(title, message, sound),
            name="clipkeeper-notify",
            daemon=True,
        ).start()
