#!/usr/bin/env python3
"""
Authentication and Credential Management for the Archer Router API

Finds credentials (saved file, environment or prompts) and turns them
into a logged-in RouterSession.
"""

import os
import json
import stat
import getpass
import logging
from pathlib import Path
from typing import Optional, Tuple

from .errors import RouterError
from .router_session import DEFAULT_TIMEOUT, RouterSession

_LOGGER = logging.getLogger(__name__)

# Default credentials file location
DEFAULT_CREDENTIALS_FILE = Path.home() / ".archer_router"
DEFAULT_ROUTER_URL = "http://192.168.1.1"
DEFAULT_USERNAME = "admin"


def normalize_router_url(value: str) -> str:
    """Add http:// when no scheme is given and strip the trailing slash"""
    value = value.strip()
    if '://' not in value:
        value = f"http://{value}"
    return value.rstrip('/')


class CredentialStore:
    """Manages storage of router credentials"""

    def __init__(self, credentials_file: Optional[Path] = None):
        """
        Initialize credential store

        Args:
            credentials_file: Path to credentials file (default: ~/.archer_router)
        """
        self.credentials_file = Path(credentials_file or DEFAULT_CREDENTIALS_FILE)

    def save(self, router_url: str, username: str, password: str):
        """
        Save credentials to file, readable by the owner only

        Raises:
            OSError: If the file cannot be written
        """
        credentials = {
            "router_url": router_url,
            "username": username,
            "password": password,
        }

        with open(self.credentials_file, 'w') as f:
            json.dump(credentials, f, indent=2)

        os.chmod(self.credentials_file, stat.S_IRUSR | stat.S_IWUSR)
        _LOGGER.debug("Credentials saved to %s", self.credentials_file)

    def load(self) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """
        Load credentials from file

        Returns:
            Tuple of (router_url, username, password), all None when missing
        """
        if not self.credentials_file.exists():
            return None, None, None

        if self.credentials_file.stat().st_mode & 0o077:
            _LOGGER.warning("%s has insecure permissions, run: chmod 600 %s",
                            self.credentials_file, self.credentials_file)

        try:
            with open(self.credentials_file, 'r') as f:
                credentials = json.load(f)
        except (OSError, ValueError) as e:
            _LOGGER.warning("Could not read %s: %s", self.credentials_file, e)
            return None, None, None

        if not isinstance(credentials, dict):
            return None, None, None

        return (
            credentials.get('router_url'),
            credentials.get('username'),
            credentials.get('password'),
        )

    def delete(self) -> bool:
        """Delete saved credentials file"""
        if self.credentials_file.exists():
            self.credentials_file.unlink()
            return True
        return False

    def exists(self) -> bool:
        """Check if credentials file exists"""
        return self.credentials_file.exists()


class AuthManager:
    """High-level authentication manager"""

    def __init__(self, credentials_file: Optional[Path] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize auth manager

        Args:
            credentials_file: Path to credentials file
            timeout: Transport timeout for created sessions
        """
        self.store = CredentialStore(credentials_file)
        self.timeout = timeout

    def login(self, router_url: str, username: str, password: str,
              save_credentials: bool = False) -> RouterSession:
        """
        Login to router and optionally save credentials

        Raises:
            CannotCreateConnection: On an invalid router address
            CannotLogin: If the handshake fails
        """
        router_url = normalize_router_url(router_url)
        session = RouterSession.connect(router_url, username, password, self.timeout)

        if save_credentials:
            self.store.save(router_url, username, password)

        return session

    def login_from_saved(self) -> Optional[RouterSession]:
        """
        Login using saved credentials

        Returns:
            Logged-in session, or None if no credentials are saved
        """
        router_url, username, password = self.store.load()

        if not router_url or not username or not password:
            return None

        return self.login(router_url, username, password)

    def login_from_env(self) -> Optional[RouterSession]:
        """
        Login using environment variables

        Environment variables:
            ROUTER_URL: Router base URL (default: http://192.168.1.1)
            ROUTER_USERNAME: Username (default: admin)
            ROUTER_PASSWORD: Password (required)
            ROUTER_TIMEOUT: Transport timeout in seconds (optional)

        Returns:
            Logged-in session, or None if ROUTER_PASSWORD is not set
        """
        password = os.getenv('ROUTER_PASSWORD')
        if not password:
            return None

        router_url = os.getenv('ROUTER_URL', DEFAULT_ROUTER_URL)
        username = os.getenv('ROUTER_USERNAME', DEFAULT_USERNAME)

        timeout = os.getenv('ROUTER_TIMEOUT')
        if timeout:
            try:
                self.timeout = float(timeout)
            except ValueError:
                _LOGGER.warning("Ignoring invalid ROUTER_TIMEOUT=%r", timeout)

        return self.login(router_url, username, password)

    def login_interactive(self, save_prompt: bool = True) -> Optional[RouterSession]:
        """
        Interactive login with prompts

        Args:
            save_prompt: Prompt user to save credentials

        Returns:
            Logged-in session, or None if login failed
        """
        saved_url, saved_user, saved_pass = self.store.load()

        if saved_url and saved_user:
            print(f"\n💾 Found saved credentials for {saved_user}@{saved_url}")
            use_saved = input("Use saved credentials? (yes/no) [yes]: ").strip().lower()

            if use_saved != 'no':
                router_url, username, password = saved_url, saved_user, saved_pass
                print("   ✅ Using saved credentials")
            else:
                router_url = input(f"Router URL [{saved_url}]: ").strip() or saved_url
                username = input(f"Username [{saved_user}]: ").strip() or saved_user
                password = getpass.getpass("Password: ").strip()
        else:
            if save_prompt:
                print("\n⚠️  Your credentials will NOT be stored by default.")
                print("   (You'll be asked if you want to save them after login)\n")

            print("📋 Enter Router Credentials:\n")
            router_url = input(f"Router URL [{DEFAULT_ROUTER_URL}]: ").strip() or DEFAULT_ROUTER_URL
            username = input(f"Username [{DEFAULT_USERNAME}]: ").strip() or DEFAULT_USERNAME
            password = getpass.getpass("Password: ").strip()

        if not password:
            print("\n❌ Password is required")
            return None

        router_url = normalize_router_url(router_url)
        print(f"\n🔄 Logging in as '{username}' to {router_url}...")
        try:
            session = self.login(router_url, username, password)
        except RouterError as e:
            print(f"\n❌ Login failed: {e}")
            print("\n💡 Troubleshooting:")
            print(f"   • Verify router URL is correct: {router_url}")
            print("   • Check username and password")
            print("   • Log out of the web interface in your browser")
            return None

        print("   ✅ Login successful!")

        if save_prompt and not (saved_url and saved_user and saved_pass):
            print("\n💾 Save credentials for future use?")
            print(f"   (Stored in {self.store.credentials_file} with permissions 600)")
            save = input("   Save? (yes/no) [no]: ").strip().lower()

            if save == 'yes':
                self.store.save(router_url, username, password)
                print("   ✅ Credentials saved")

        return session
