"""Clipboard access for bbw."""

import logging
import subprocess
from typing import List

import pyperclip


# Command-line clipboard writers tried after pyperclip, in order.
FALLBACK_COMMANDS: List[List[str]] = [
    ['xclip', '-selection', 'clipboard'],  # X11
    ['xsel', '--clipboard', '--input'],    # X11
    ['wl-copy'],                           # Wayland
    ['termux-clipboard-set'],              # Termux/Android
]


class ClipboardManager:
    """Cross-platform clipboard writer with command-line fallbacks."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def copy_to_clipboard(self, text: str) -> bool:
        """Copy text to clipboard using the first method that works.

        Returns:
            True if successful, False otherwise
        """
        if self._try_pyperclip(text):
            self.logger.debug("Copied to clipboard using pyperclip")
            return True

        for cmd in FALLBACK_COMMANDS:
            if self._try_command(cmd, text):
                self.logger.debug("Copied to clipboard using %s", cmd[0])
                return True

        self.logger.warning("All clipboard methods failed")
        return False

    def _try_pyperclip(self, text: str) -> bool:
        try:
            pyperclip.copy(text)
            return True
        except (OSError, pyperclip.PyperclipException) as e:
            self.logger.debug("pyperclip failed: %s", e)
            return False

    def _try_command(self, cmd: List[str], text: str) -> bool:
        try:
            subprocess.run(
                cmd,
                input=text,
                text=True,
                check=True,
                capture_output=True
            )
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.debug("Clipboard command %s failed: %s", cmd[0], e)
            return False
