"""
Configuration management for the client
"""
import json
import os
from pathlib import Path
from typing import Optional

DEFAULT_CONFIG_DIR = "~/.talentbook"
DEFAULT_SERVER_URL = "http://localhost:8000/api"


class Config:
    """Client configuration, persisted as JSON in the data directory"""

    def __init__(self, config_dir: str = None):
        if config_dir is None:
            config_dir = os.environ.get("TALENTBOOK_HOME", os.path.expanduser(DEFAULT_CONFIG_DIR))

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.config_file = self.config_dir / "config.json"
        self.db_file = self.config_dir / "local.db"

        self.data = self._load()

    def _load(self) -> dict:
        """Load configuration from file"""
        if self.config_file.exists():
            with open(self.config_file, 'r', encoding='utf-8') as f:
                return json.load(f)
        return {}

    def save(self):
        """Save configuration to file"""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self.data, f, indent=2)

    @property
    def server_url(self) -> str:
        return self.data.get('server_url', DEFAULT_SERVER_URL)

    @server_url.setter
    def server_url(self, value: str):
        self.data['server_url'] = value.rstrip('/')
        self.save()

    @property
    def session_token(self) -> Optional[str]:
        return self.data.get('session_token')

    @session_token.setter
    def session_token(self, value: Optional[str]):
        if value is None:
            self.data.pop('session_token', None)
        else:
            self.data['session_token'] = value
        self.save()

    def get_session_token(self) -> Optional[str]:
        """Token sent as the bearer credential on sync requests"""
        return self.session_token

    @property
    def last_sync(self) -> Optional[str]:
        """Last successful push (ISO format)"""
        return self.data.get('last_sync')

    @last_sync.setter
    def last_sync(self, value: str):
        self.data['last_sync'] = value
        self.save()

    @property
    def sync_pending(self) -> bool:
        """Local changes exist that have not been pushed yet"""
        return self.data.get('sync_pending', False)

    @sync_pending.setter
    def sync_pending(self, value: bool):
        self.data['sync_pending'] = value
        self.save()

    def is_logged_in(self) -> bool:
        return self.session_token is not None
