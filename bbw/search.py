"""
Search loop for bbw.

Reads queries and single-letter commands, searches the vault through
the Bitwarden CLI and copies fields of the chosen item to the clipboard.
"""

import logging
from typing import List, Optional, Tuple

from bbw.bitwarden import BitwardenCLI, BitwardenError, Item
from bbw.clipboard import ClipboardManager


TITLE = "Better Bitwarden"
COMMAND_HINT = "g - generate | h - help | s - status | u - update | q - quit"
HELP_TEXT = (
    "Commands:\n"
    "\n"
    "g - Generate password/passphrase\n"
    "h - Show this help\n"
    "s - Show vault status\n"
    "u - Update CLI and sync vault\n"
    "q - Quit"
)

CANCEL = "Cancel"
PASSWORD_MASK = "********"
NO_URI = "No URI available"

GEN_SPECIAL = "Password with Special (-lusn --length 18 --minSpecial 2 --minNumber 2)"
GEN_PLAIN = "Password without Special (-lun --length 18 --minNumber 2)"
GEN_PASSPHRASE = "Passphrase (5 words 1 number)"
GENERATOR_OPTIONS = [GEN_SPECIAL, GEN_PLAIN, GEN_PASSPHRASE, CANCEL]
PASSWORD_LENGTH = 18
PASSPHRASE_WORDS = 5


def display_string(item: Item) -> str:
    """Label an item for the result list: "name (username)" or "name (Note)"."""
    if item.is_note:
        return f"{item.name} (Note)"
    if item.login.username:
        return f"{item.name} ({item.login.username})"
    return item.name


def format_metadata(item: Item) -> str:
    lines = [
        f"Created: {item.creation_date}",
        f"Last Modified: {item.revision_date}",
    ]
    if item.login.password_revision_date:
        lines.append(f"Password Last Modified: {item.login.password_revision_date}")
    if item.password_history and item.password_history[0].last_used_date:
        lines.append(f"Password Last Used: {item.password_history[0].last_used_date}")
    lines.append(f"URI: {item.first_uri or NO_URI}")
    return "\n".join(lines) + "\n"


def item_actions(item: Item) -> List[Tuple[str, str]]:
    """Build the (label, action) list offered for a selected item."""
    actions = [
        (f"Username: {item.login.username}", "username"),
        (f"Password: {PASSWORD_MASK if item.login.password else ''}", "password"),
    ]
    if item.notes:
        note_lines = item.notes.splitlines() or [""]
        suffix = " ..." if len(note_lines) > 1 else ""
        actions.append((f"Notes: {note_lines[0]}{suffix}", "notes"))
    actions.append((f"URL: {item.first_uri or NO_URI}", "url"))
    actions.append(("Show Metadata", "metadata"))
    actions.append((CANCEL, "cancel"))
    return actions


class SearchUI:
    """Interactive search-and-copy loop."""

    def __init__(self, client: BitwardenCLI, screen, clipboard: Optional[ClipboardManager] = None):
        """Initialize the search UI.

        Args:
            client: Bitwarden CLI wrapper holding the session
            screen: Screen providing prompts and output
            clipboard: Clipboard writer, a ClipboardManager by default
        """
        self.client = client
        self.screen = screen
        self.clipboard = clipboard or ClipboardManager()
        self.logger = logging.getLogger(__name__)

    def run(self):
        """Run the loop until the user quits.

        Raises:
            BitwardenError: If a search or generation fails
        """
        self.screen.banner(TITLE, COMMAND_HINT)

        while True:
            query = self.screen.text_input("Search")
            if query is None or query == "q":
                self.logger.debug("Quitting search loop")
                return
            if query == "":
                continue
            if query == "h":
                self.screen.box(HELP_TEXT, title="Help")
            elif query == "g":
                self.show_password_generator()
            elif query == "s":
                self.show_status()
            elif query == "u":
                self.update_and_sync()
            else:
                self.search(query)

    def search(self, query: str):
        items = self.client.search(query)
        if not items:
            self.screen.warning("No items found")
            return

        options = [display_string(item) for item in items] + [CANCEL]
        index = self.screen.select(
            options,
            "Select item (↑/↓ arrows to move, enter to select)",
            max_height=15
        )
        if index is None or index >= len(items):
            return

        self.handle_item_selection(items[index])

    def handle_item_selection(self, item: Item):
        """Offer the copy actions for one item and perform the chosen one."""
        actions = item_actions(item)
        index = self.screen.select(
            [label for label, _ in actions],
            "Select action to copy to clipboard",
            max_height=25
        )
        if index is None:
            return

        action = actions[index][1]
        if action == "username":
            self._copy(item.login.username, "Username", item.name)
        elif action == "password":
            self._copy(item.login.password, "Password", item.name)
        elif action == "notes":
            self._copy(item.notes, "Notes", item.name)
        elif action == "url":
            if item.first_uri:
                self._copy(item.first_uri, "URL", item.name)
            else:
                self.screen.info("No URI available to copy")
        elif action == "metadata":
            self.show_metadata(item)

    def show_metadata(self, item: Item):
        metadata = format_metadata(item)
        self.screen.info(f"Metadata for {item.name}")
        self.screen.print(metadata)

        if self.screen.confirm("Copy metadata to clipboard?"):
            self._copy(metadata, "Metadata", item.name)

    def show_password_generator(self):
        index = self.screen.select(GENERATOR_OPTIONS, "Select generator type")
        if index is None:
            return

        choice = GENERATOR_OPTIONS[index]
        if choice == GEN_SPECIAL:
            secret = self.client.generate_password(PASSWORD_LENGTH, True)
            kind = "Password"
        elif choice == GEN_PLAIN:
            secret = self.client.generate_password(PASSWORD_LENGTH, False)
            kind = "Password"
        elif choice == GEN_PASSPHRASE:
            secret = self.client.generate_passphrase(PASSPHRASE_WORDS, True)
            kind = "Passphrase"
        else:
            return

        self.screen.success(f"Generated {kind.lower()}: {secret}")
        if self.clipboard.copy_to_clipboard(secret):
            self.screen.success(f"{kind} copied to clipboard!")
        else:
            self.screen.error(f"Failed to copy {kind.lower()} to clipboard")

    def show_status(self):
        try:
            status = self.client.get_status()
        except BitwardenError as e:
            self.screen.warning(f"Failed to get status: {e}")
            return

        lines = [
            f"Server URL: {status.get('serverUrl')}",
            f"Last Sync: {status.get('lastSync')}",
            f"Email: {status.get('userEmail')}",
            f"User ID: {status.get('userId')}",
            f"Status: {status.get('status')}",
        ]
        self.screen.box("\n".join(lines), title="Vault Status")

    def update_and_sync(self):
        self.screen.info("Checking for updates and syncing vault...")
        try:
            message = self.client.check_updates()
            if message:
                self.screen.info(message)
        except BitwardenError as e:
            self.screen.warning(f"Update check failed: {e}")

        try:
            self.client.sync()
        except BitwardenError as e:
            self.screen.warning(f"Sync failed: {e}")
        else:
            self.screen.success("Vault synced successfully!")

    def _copy(self, text: str, label: str, name: str):
        if self.clipboard.copy_to_clipboard(text):
            self.screen.success(f"{label} for {name} copied to clipboard!")
        else:
            self.logger.error("Failed to copy %s to clipboard", label.lower())
            self.screen.error(f"Failed to copy {label.lower()} to clipboard")
