"""Clipboard utilities for the CLI frontend.

Uses pyperclip for cross-platform clipboard access.
"""

from __future__ import annotations

import pyperclip

from aesbox.security.keys import KeyMaterial


def format_key_material(material: KeyMaterial) -> str:
    """Render key and IV as the two Base64 lines shown in the key panel."""
    key_b64, iv_b64 = material.to_base64()
    return f"Key: {key_b64}\nIV: {iv_b64}"


def copy_key_material(material: KeyMaterial) -> None:
    """Copy the Base64 key and IV to the system clipboard.

    Raises:
        pyperclip.PyperclipException: If clipboard access fails.
    """
    pyperclip.copy(format_key_material(material))
