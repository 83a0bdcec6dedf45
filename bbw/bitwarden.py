"""
Bitwarden CLI wrapper for bbw.

This module runs the Bitwarden CLI (bw) as subprocesses for
authentication, search, generation and vault maintenance, and
parses its output into Item records.
"""

import json
import subprocess
import shutil
import logging
import os
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional


class BitwardenError(Exception):
    """Raised when a bw invocation fails or returns unparseable output."""


@dataclass
class PasswordHistoryEntry:
    last_used_date: str = ""
    password: str = ""


@dataclass
class Login:
    username: str = ""
    password: str = ""
    password_revision_date: str = ""
    uris: List[str] = field(default_factory=list)


@dataclass
class Item:
    """A single vault entry as returned by `bw list items`."""

    id: str = ""
    name: str = ""
    notes: str = ""
    creation_date: str = ""
    revision_date: str = ""
    password_history: List[PasswordHistoryEntry] = field(default_factory=list)
    login: Login = field(default_factory=Login)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        """Build an Item from bw JSON, treating missing or null sections as empty."""
        login_data = data.get("login") or {}
        uris = [
            uri.get("uri") or ""
            for uri in (login_data.get("uris") or [])
            if isinstance(uri, dict)
        ]
        history = [
            PasswordHistoryEntry(
                last_used_date=entry.get("lastUsedDate") or "",
                password=entry.get("password") or "",
            )
            for entry in (data.get("passwordHistory") or [])
            if isinstance(entry, dict)
        ]
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            notes=data.get("notes") or "",
            creation_date=data.get("creationDate") or "",
            revision_date=data.get("revisionDate") or "",
            password_history=history,
            login=Login(
                username=login_data.get("username") or "",
                password=login_data.get("password") or "",
                password_revision_date=login_data.get("passwordRevisionDate") or "",
                uris=uris,
            ),
        )

    @property
    def first_uri(self) -> str:
        """First URI of the login, or an empty string."""
        return self.login.uris[0] if self.login.uris else ""

    @property
    def is_note(self) -> bool:
        return bool(self.notes) and not self.login.username and not self.login.password


class BitwardenCLI:
    """Wrapper for Bitwarden CLI operations."""

    # bw reads the master password from this variable with --passwordenv
    PASSWORD_ENV = "BW_PASSWORD"

    def __init__(self, session: str = ""):
        """Initialize the wrapper with an optional session key."""
        self.logger = logging.getLogger(__name__)
        self.bw_path = self._find_bw_path()
        self.session = session or ""

    def _find_bw_path(self) -> str:
        """Find the path to the bw command.

        Returns:
            Path to bw command, or 'bw' if not found in specific locations
        """
        # Common locations for bw when installed via npm or homebrew
        common_paths = [
            "/usr/local/bin/bw",
            "/opt/homebrew/bin/bw",
            os.path.expanduser("~/.npm-global/bin/bw"),
        ]

        bw_path = shutil.which("bw")
        if bw_path:
            return bw_path

        for path in common_paths:
            if os.path.exists(path):
                return path

        return "bw"

    def _env(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        env = os.environ.copy()
        if self.session:
            env["BW_SESSION"] = self.session
        if extra:
            env.update(extra)
        return env

    def _run(self, args: List[str], action: str,
             extra_env: Optional[Dict[str, str]] = None) -> str:
        """Run bw with a literal argument list and return its stdout.

        Args:
            args: Arguments after the bw executable
            action: Error prefix, e.g. "search failed"
            extra_env: Additional environment for the child process only

        Raises:
            BitwardenError: If bw cannot be started or exits non-zero
        """
        cmd = [self.bw_path] + args
        self.logger.debug("Running command: bw %s", args[0] if args else "")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                env=self._env(extra_env)
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            self.logger.error("%s: %s", action, e)
            if stderr:
                self.logger.error("Error output: %s", stderr)
                raise BitwardenError(f"{action}: exit status {e.returncode}: {stderr}") from e
            raise BitwardenError(f"{action}: exit status {e.returncode}") from e
        except OSError as e:
            self.logger.error("%s: %s", action, e)
            raise BitwardenError(f"{action}: {e}") from e
        return result.stdout

    def check_cli_available(self) -> bool:
        """Check if the Bitwarden CLI is available.

        Returns:
            True if the CLI is available, False otherwise
        """
        return os.path.exists(self.bw_path) if self.bw_path != "bw" else shutil.which("bw") is not None

    def login(self, email: str, password: str) -> str:
        """Log in and return the new session key.

        The master password is handed over through the child's environment,
        never on the command line.
        """
        output = self._run(
            ["login", email, "--passwordenv", self.PASSWORD_ENV, "--raw"],
            "login failed",
            {self.PASSWORD_ENV: password},
        )
        self.session = output.strip()
        self.logger.debug("Login successful, session key length: %d", len(self.session))
        return self.session

    def unlock(self, password: str) -> str:
        """Unlock the vault with the master password and return the session key."""
        output = self._run(
            ["unlock", "--passwordenv", self.PASSWORD_ENV, "--raw"],
            "unlock failed",
            {self.PASSWORD_ENV: password},
        )
        self.session = output.strip()
        self.logger.debug("Unlock successful, session key length: %d", len(self.session))
        return self.session

    def validate_session(self) -> bool:
        """Check the session with a lightweight `bw status` call.

        Returns:
            True only if a session is set and bw reports the vault unlocked
        """
        if not self.session:
            return False
        try:
            status = self.get_status()
        except BitwardenError as e:
            self.logger.debug("Session validation failed: %s", e)
            return False
        valid = status.get("status") == "unlocked"
        self.logger.debug("Session valid: %s", valid)
        return valid

    def status(self) -> str:
        """Return "unlocked" if the session is valid, otherwise "locked"."""
        return "unlocked" if self.validate_session() else "locked"

    def get_status(self) -> Dict[str, Any]:
        """Return the parsed output of `bw status`."""
        output = self._run(["status"], "status check failed")
        try:
            status = json.loads(output)
        except json.JSONDecodeError as e:
            raise BitwardenError(f"failed to parse status: {e}") from e
        if not isinstance(status, dict):
            raise BitwardenError("failed to parse status: expected a JSON object")
        return status

    def search(self, query: str) -> List[Item]:
        """Search for items in the vault.

        Args:
            query: Search text, passed to bw as a single argument

        Returns:
            List of matching vault items
        """
        if not self.session:
            raise BitwardenError("no session provided")

        output = self._run(["list", "items", "--search", query, "--raw"], "search failed")
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise BitwardenError(f"failed to parse items: {e}") from e
        if not isinstance(data, list):
            raise BitwardenError("failed to parse items: expected a JSON array")

        items = [Item.from_dict(entry) for entry in data if isinstance(entry, dict)]
        self.logger.debug("Search returned %d items", len(items))
        return items

    def generate_password(self, length: int, include_special: bool) -> str:
        """Generate a random password.

        With include_special the password uses lowercase, uppercase, special
        and numeric characters (-lusn) with at least two specials and two
        numbers; otherwise -lun with at least two numbers.
        """
        args = ["generate", "--length", str(length)]
        if include_special:
            args += ["-lusn", "--minSpecial", "2", "--minNumber", "2"]
        else:
            args += ["-lun", "--minNumber", "2"]
        return self._run(args, "password generation failed").strip()

    def generate_passphrase(self, words: int, include_number: bool = True) -> str:
        """Generate a passphrase of `words` words with no separator."""
        args = ["generate", "--passphrase", "--words", str(words), "--separator", "empty"]
        if include_number:
            args.append("--includeNumber")
        return self._run(args, "passphrase generation failed").strip()

    def sync(self) -> None:
        """Sync the vault with the server."""
        self._run(["sync"], "sync failed")
        self.logger.debug("Vault synced")

    def check_updates(self) -> str:
        """Run `bw update` and return its message."""
        return self._run(["update"], "update check failed").strip()
