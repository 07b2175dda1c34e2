"""
Configuration management for Smartcar API client
"""

import os
import platform
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .version import __version__

USER_AGENT = (
    f"smartcar-api-client/{__version__} "
    f"({platform.system()}; {platform.machine()}) "
    f"Python v{platform.python_version()}"
)

DEFAULT_API_ORIGIN = "https://api.smartcar.com"
DEFAULT_API_VERSION = "2.0"
DEFAULT_AUTHORIZE_URL = "https://connect.smartcar.com/oauth/authorize"
DEFAULT_TOKEN_URL = "https://auth.smartcar.com/oauth/token"


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SmartcarConfig:
    """Immutable settings shared by the auth and API clients"""

    # Permissions requested by the authentication helper
    DEFAULT_SCOPES = [
        "read_vehicle_info",
        "read_odometer",
        "read_location",
        "read_battery",
        "read_charge",
        "read_fuel",
    ]

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uri: Optional[str] = None
    test_mode: bool = False
    api_origin: str = DEFAULT_API_ORIGIN
    api_version: str = DEFAULT_API_VERSION
    authorize_url: str = DEFAULT_AUTHORIZE_URL
    token_url: str = DEFAULT_TOKEN_URL

    @classmethod
    def from_env(cls, env_file: str = ".env") -> "SmartcarConfig":
        """
        Build configuration from the environment

        Args:
            env_file: Path to environment file, loaded first if it exists

        Returns:
            Configuration snapshot taken at call time
        """
        if os.path.exists(env_file):
            load_dotenv(env_file)

        return cls(
            client_id=os.getenv("SMARTCAR_CLIENT_ID"),
            client_secret=os.getenv("SMARTCAR_CLIENT_SECRET"),
            redirect_uri=os.getenv("SMARTCAR_REDIRECT_URI"),
            test_mode=_env_flag(os.getenv("SMARTCAR_TEST_MODE")),
            api_origin=os.getenv("SMARTCAR_API_ORIGIN") or DEFAULT_API_ORIGIN,
            api_version=os.getenv("SMARTCAR_API_VERSION") or DEFAULT_API_VERSION,
        )

    @property
    def api_url(self) -> str:
        """Base URL for API requests, including the version segment"""
        return f"{self.api_origin.rstrip('/')}/v{self.api_version}"

    def with_api_version(self, version: str) -> "SmartcarConfig":
        """Return a copy targeting another API version"""
        return replace(self, api_version=version)

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of missing required fields

        Returns:
            List of missing required environment variable names
        """
        missing = []

        if not self.client_id:
            missing.append("SMARTCAR_CLIENT_ID")
        if not self.client_secret:
            missing.append("SMARTCAR_CLIENT_SECRET")
        if not self.redirect_uri:
            missing.append("SMARTCAR_REDIRECT_URI")

        return missing

    def is_valid(self) -> bool:
        """Check if configuration is valid"""
        return len(self.validate()) == 0

    def to_dict(self) -> Dict[str, Optional[str]]:
        """
        Convert configuration to dictionary

        Returns:
            Configuration as dictionary
        """
        return {
            "client_id": self.client_id,
            "client_secret": "***" if self.client_secret else None,  # Hide secret
            "redirect_uri": self.redirect_uri,
            "mode": "test" if self.test_mode else "live",
            "api_url": self.api_url,
            "authorize_url": self.authorize_url,
            "token_url": self.token_url,
        }
