"""Runtime settings.

Development mode enables best-effort misuse warnings, such as writing the
same mutable object back into a signal. It is on when SIGTRACK_ENV is
"development" or when Python runs with -X dev.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field


def _development_default() -> bool:
    env = os.environ.get("SIGTRACK_ENV")
    if env is not None:
        return env.strip().lower() == "development"
    return bool(sys.flags.dev_mode)


@dataclass
class Settings:
    development: bool = field(default_factory=_development_default)


settings = Settings()


def configure(*, development: bool | None = None) -> Settings:
    """Adjust the global settings. Arguments left as None are unchanged."""
    if development is not None:
        settings.development = development
    return settings
