"""Small helper to build an AESBox app context for the TUI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from aesbox.core.config import AppConfig, load_config
from aesbox.security.session import KeySession


@dataclass
class AppContext:
    """Container for runtime objects the UI needs."""

    config: AppConfig
    session: KeySession


def build_context(environ: Optional[Mapping[str, str]] = None) -> AppContext:
    """
    Read configuration and start a session with freshly generated key material.

    Settings come from ``AESBOX_*`` environment variables (see
    :mod:`aesbox.core.config`); a bad value raises ``ConfigurationError``
    before any key is generated.
    """
    config = load_config(environ)
    return AppContext(config=config, session=KeySession(config))
