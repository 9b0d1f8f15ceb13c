"""
Notifications — platform-aware desktop notice when an interval starts.
Best-effort: every failure is reported as False, never raised.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import threading

logger = logging.getLogger(__name__)


class Notifier:

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def notify(self, title: str, message: str) -> bool:
        """Show a desktop notification. Returns True when one was shown."""
        if not self.enabled:
            return False
        if sys.platform == "win32":
            ok = self._windows_notify(title, message)
        elif sys.platform == "darwin":
            ok = self._macos_notify(title, message)
        else:
            ok = self._linux_notify(title, message)
        if not ok:
            logger.debug("Desktop notification not shown: %s", message)
        return ok

    def notify_background(self, title: str, message: str) -> None:
        """Fire-and-forget variant; the subprocess runs on a daemon thread."""
        if not self.enabled:
            return
        threading.Thread(target=self.notify, args=(title, message), daemon=True).start()

    # ------------------------------------------------------------------
    # Platform implementations
    # ------------------------------------------------------------------

    def _windows_notify(self, title: str, message: str) -> bool:
        script = (
            "Add-Type -AssemblyName System.Windows.Forms; "
            "$n = New-Object System.Windows.Forms.NotifyIcon; "
            "$n.Icon = [System.Drawing.SystemIcons]::Information; "
            "$n.Visible = $true; "
            f"$n.ShowBalloonTip(5000, '{_ps_quote(title)}', '{_ps_quote(message)}', 'Info')"
        )
        try:
            subprocess.run(
                ["powershell", "-NoProfile", "-Command", script],
                check=True, capture_output=True, timeout=5,
            )
            return True
        except (OSError, subprocess.SubprocessError):
            return False

    def _macos_notify(self, title: str, message: str) -> bool:
        script = f'display notification "{_as_quote(message)}" with title "{_as_quote(title)}"'
        try:
            subprocess.run(
                ["osascript", "-e", script],
                check=True, capture_output=True, timeout=5,
            )
            return True
        except (OSError, subprocess.SubprocessError):
            return False

    def _linux_notify(self, title: str, message: str) -> bool:
        # freedesktop notification daemon
        try:
            subprocess.run(
                ["notify-send", "--app-name=pomotimer", title, message],
                check=True, capture_output=True, timeout=5,
            )
            return True
        except (OSError, subprocess.SubprocessError):
            return False


def _ps_quote(text: str) -> str:
    return text.replace("'", "''")


def _as_quote(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
