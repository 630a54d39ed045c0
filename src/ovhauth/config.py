"""
Client Configuration
====================
Configuration for an OVH API client, with defaults from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .types import DEFAULT_ACCESS_RULES, AccessRule

DEFAULT_BASE_URL = "https://api.ovh.com/1.0"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


@dataclass
class OvhConfig:
    """Configuration for an OVH API client."""
    base_url: str = field(default_factory=lambda: _env("OVH_ENDPOINT", DEFAULT_BASE_URL))
    application_key: str = field(default_factory=lambda: _env("OVH_APPLICATION_KEY", ""))
    application_secret: str = field(default_factory=lambda: _env("OVH_APPLICATION_SECRET", ""))
    consumer_key: Optional[str] = field(default_factory=lambda: _env("OVH_CONSUMER_KEY"))
    access_rules: Sequence[AccessRule] = DEFAULT_ACCESS_RULES
    location: Optional[str] = None
    timeout: float = field(default_factory=lambda: float(_env("OVH_TIMEOUT", "10.0")))
