"""
Main application class for bbw.

This module contains the BbwApp class that restores or creates the
Bitwarden session, then runs the curses search loop.
"""

import curses
import locale
import logging
import os
from typing import Optional

from bbw.bitwarden import BitwardenCLI
from bbw.config import Config, load_config, save_config
from bbw.search import SearchUI
from bbw.ui import Screen


class SetupCancelled(Exception):
    """Raised when the user leaves first time setup with ESC."""


class BbwApp:
    """Main application class for bbw."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the application.

        Args:
            config_path: Config file to use instead of ~/.config/bbw/config.yaml
        """
        self.config_path = config_path
        self.config: Optional[Config] = None
        self.bw_cli: Optional[BitwardenCLI] = None
        self.needs_setup = False

        # Log to file only if BW_DEBUG=1 so nothing is written over the curses screen
        if os.environ.get('BW_DEBUG', '0') == '1':
            logging.basicConfig(
                level=logging.DEBUG,
                format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                filename='bbw.log'
            )

        self.logger = logging.getLogger(__name__)

    def run(self) -> int:
        """Prepare the session and run the search loop.

        Returns:
            Process exit status
        """
        if not BitwardenCLI().check_cli_available():
            print("Error: Bitwarden CLI (bw) is not available.")
            print("Please install the Bitwarden CLI first:")
            print("  npm install -g @bitwarden/cli")
            return 1

        self.prepare_session()

        # Wide characters and a short ESC delay for the prompts
        locale.setlocale(locale.LC_ALL, '')
        os.environ.setdefault('ESCDELAY', '25')
        try:
            curses.wrapper(self._run_ui)
        except SetupCancelled:
            print("Setup cancelled.")
            return 1
        return 0

    def prepare_session(self):
        """Load the config and make sure the cached session is usable.

        Unlocks with the cached master password when the session has
        expired. Without a cached password, first time setup runs once
        the UI is up.
        """
        self.config = load_config(self.config_path)
        self.bw_cli = BitwardenCLI(self.config.session)

        if self.bw_cli.validate_session():
            self.logger.debug("Cached session is valid")
            return

        if not self.config.password:
            self.logger.debug("No cached password, first time setup required")
            self.needs_setup = True
            return

        self.logger.debug("Cached session invalid, unlocking with cached password")
        self.config.session = self.bw_cli.unlock(self.config.password)
        save_config(self.config, self.config_path)

    def first_time_setup(self, screen):
        """Ask for email and master password, then log in or unlock.

        Raises:
            SetupCancelled: If the user presses ESC at a prompt
            BitwardenError: If bw rejects the credentials
        """
        screen.info("First time setup")
        email = screen.text_input("Enter your Bitwarden email")
        if email is None:
            raise SetupCancelled()
        password = screen.text_input("Enter your master password", mask="*")
        if password is None:
            raise SetupCancelled()

        client = BitwardenCLI()
        status = client.get_status()
        if status.get("userEmail") == email:
            self.logger.debug("Already logged in as this user, unlocking")
            session = client.unlock(password)
        else:
            self.logger.debug("Logging in")
            session = client.login(email, password)

        self.config.email = email
        self.config.password = password
        self.config.session = session
        save_config(self.config, self.config_path)

        self.bw_cli = client
        self.needs_setup = False
        screen.success("Vault unlocked")

    def _run_ui(self, stdscr):
        """Run the curses UI.

        Args:
            stdscr: The main curses screen object
        """
        screen = Screen(stdscr)
        if self.needs_setup:
            self.first_time_setup(screen)
        try:
            SearchUI(self.bw_cli, screen).run()
        except Exception as e:
            self.logger.error("UI error: %s", e)
            raise
