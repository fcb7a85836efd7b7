"""Textual front end for AESBox.

Start here with `python -m aesbox.frontend.cli.app`
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Input, Label, Static

from aesbox.core.exceptions import AESBoxError, ConfigurationError
from aesbox.frontend.cli.clipboard import copy_key_material, format_key_material
from aesbox.frontend.cli.context import AppContext, build_context
from aesbox.frontend.cli.logging_config import configure_logging
from aesbox.frontend.cli.messages import describe_error

logger = logging.getLogger(__name__)


# === Modal definitions ===


class PathModal(ModalScreen[Optional[str]]):
    """Ask for a file path (stands in for the desktop file picker)."""

    def __init__(self, title: str, hint: str, placeholder: str = "/path/to/file"):
        super().__init__()
        self.dialog_title = title
        self.hint = hint
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:  # pragma: no cover - UI only
        with Vertical(classes="dialog"):
            yield Static(self.dialog_title, classes="title")
            yield Label(f"{self.hint} (Enter to confirm, Esc to cancel)")
            self.path_input = Input(placeholder=self.placeholder)
            yield self.path_input
            with Horizontal():
                yield Button("Cancel (Esc)", id="cancel")
                yield Button("OK (Enter)", id="ok", variant="primary")

    def on_mount(self) -> None:  # pragma: no cover
        self.set_focus(self.path_input)

    def _submit(self) -> None:
        path = (self.path_input.value or "").strip()
        if not path:
            self.app.notify("Path cannot be empty", severity="error")
            return
        self.dismiss(path)

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        if event.button.id == "cancel":
            self.dismiss(None)
        else:
            self._submit()

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(None)
        elif event.key == "enter":
            self._submit()


class PasswordModal(ModalScreen[Optional[str]]):
    """Password prompt; with ``confirm=True`` the password must be typed twice."""

    def __init__(self, prompt: str, confirm: bool = False):
        super().__init__()
        self.prompt = prompt
        self.confirm = confirm
        self.empty_acknowledged = False

    def compose(self) -> ComposeResult:  # pragma: no cover - UI only
        with Vertical(classes="dialog"):
            yield Static("Password", classes="title")
            yield Label(self.prompt)
            self.password_input = Input(placeholder="••••••", password=True)
            yield self.password_input
            self.confirm_input = None
            if self.confirm:
                yield Label("Confirm Password")
                self.confirm_input = Input(placeholder="••••••", password=True)
                yield self.confirm_input
            with Horizontal():
                yield Button("Cancel", id="cancel")
                yield Button("OK", id="ok", variant="primary")

    def on_mount(self) -> None:  # pragma: no cover
        self.set_focus(self.password_input)

    def _submit(self) -> None:
        # Passwords are used as typed; surrounding spaces are significant.
        password = self.password_input.value or ""
        if self.confirm_input is not None and password != (self.confirm_input.value or ""):
            self.app.notify("Passwords do not match", severity="error")
            return
        # An empty password is allowed (older key files use one) but must be submitted twice.
        if not password and not self.empty_acknowledged:
            self.empty_acknowledged = True
            self.app.notify("Password is empty. Press OK again to use it.", severity="warning")
            return
        self.dismiss(password)

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        if event.button.id == "cancel":
            self.dismiss(None)
        else:
            self._submit()

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(None)
        elif event.key == "enter":
            self._submit()


class ErrorModal(ModalScreen[None]):
    """Modal for displaying error messages prominently."""

    def __init__(self, title: str, message: str):
        super().__init__()
        self.error_title = title
        self.error_message = message

    def compose(self) -> ComposeResult:  # pragma: no cover
        with Vertical(classes="dialog"):
            yield Static(self.error_title, classes="title")
            yield Static(self.error_message)
            yield Static("")
            yield Button("OK", id="ok", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        self.dismiss(None)

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key in ("escape", "enter"):
            self.dismiss(None)


class AESBoxApp(App):
    """Encrypt/decrypt files and manage the session key."""

    TITLE = "AESBox"

    CSS = """
    #main { border: heavy $surface; }
    .title { padding: 1 1; text-style: bold; }
    #keyiv { padding: 0 1 1 1; height: 3; }
    #actions { height: 3; }
    #actions Button { margin: 0 1; }
    #output { padding: 1 1; color: $text-muted; }
    ModalScreen { align: center middle; background: rgba(0,0,0,0.45); }
    .dialog { width: 75%; height: 75%; padding: 1; border: heavy $surface; background: $boost; }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("e", "encrypt", "Encrypt"),
        ("d", "decrypt", "Decrypt"),
        ("g", "regenerate", "Regenerate Key/IV"),
        ("s", "save_key", "Save Key/IV"),
        ("l", "load_key", "Load Key/IV"),
        ("v", "toggle_reveal", "Show/Hide Key"),
        ("c", "copy_key", "Copy Key/IV"),
    ]

    def __init__(self, ctx: AppContext | None = None):
        self.ctx = ctx or build_context()
        super().__init__()
        self.key_view: Static | None = None
        self.output_view: Static | None = None
        self.output_text = ""
        self.key_text = ""
        # Base64 key/IV stay hidden until the user asks for them.
        self.reveal_key = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main"):
            yield Static("Key / IV", classes="title")
            self.key_view = Static("", id="keyiv")
            yield self.key_view
            with Horizontal(id="actions"):
                yield Button("Encrypt", id="encrypt", variant="primary")
                yield Button("Decrypt", id="decrypt", variant="primary")
                yield Button("Regenerate Key/IV", id="regenerate")
                yield Button("Save Key/IV", id="save_key")
                yield Button("Load Key/IV", id="load_key")
            yield Static("Output", classes="title")
            self.output_view = Static("", id="output")
            yield self.output_view
        yield Footer()

    def on_mount(self) -> None:
        self._update_key_view()
        fmt = self.ctx.config.file_format.value
        self._set_output(f"Ready. New key generated for this session ({fmt} file format).")

    # === helpers ===

    def _set_output(self, text: str) -> None:
        self.output_text = text
        if self.output_view is not None:
            self.output_view.update(text)

    def _update_key_view(self) -> None:
        session = self.ctx.session
        if session.is_locked:
            text = "No key loaded"
        elif self.reveal_key:
            text = format_key_material(session.material)
        else:
            text = f"Fingerprint: {session.material.fingerprint()}  (press v to show)"
        self.key_text = text
        if self.key_view is not None:
            self.key_view.update(text)

    def _fail(self, action: str, verb: str, exc: BaseException) -> None:
        message = describe_error(exc, action)
        logger.warning("%s failed: %s", action, exc)
        self._set_output(f"Error while {verb}: {message}")
        self.push_screen(ErrorModal("Error", message))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        actions = {
            "encrypt": self.action_encrypt,
            "decrypt": self.action_decrypt,
            "regenerate": self.action_regenerate,
            "save_key": self.action_save_key,
            "load_key": self.action_load_key,
        }
        handler = actions.get(event.button.id or "")
        if handler is not None:
            handler()

    # === actions ===

    def action_encrypt(self) -> None:
        self.push_screen(PathModal("Encrypt File", "File to encrypt"), self._handle_encrypt)

    def _handle_encrypt(self, path: Optional[str]) -> None:
        if not path:
            return
        try:
            out = self.ctx.session.encrypt_file(path)
        except (AESBoxError, OSError) as exc:
            self._fail("encrypt", "encrypting file", exc)
            return
        self._set_output(f"File encrypted successfully: {out}")

    def action_decrypt(self) -> None:
        self.push_screen(PathModal("Decrypt File", "File to decrypt"), self._handle_decrypt)

    def _handle_decrypt(self, path: Optional[str]) -> None:
        if not path:
            return
        try:
            out = self.ctx.session.decrypt_file(path)
        except (AESBoxError, OSError) as exc:
            self._fail("decrypt", "decrypting file", exc)
            return
        self._set_output(f"File decrypted successfully: {out}")

    def action_regenerate(self) -> None:
        material = self.ctx.session.regenerate()
        self._update_key_view()
        self._set_output(
            f"Encryption settings regenerated. New key fingerprint: {material.fingerprint()}"
        )

    def action_save_key(self) -> None:
        self.push_screen(
            PathModal("Save Key/IV", "Key file to write", placeholder="/path/to/file.key"),
            self._handle_save_path,
        )

    def _handle_save_path(self, path: Optional[str]) -> None:
        if not path:
            return

        def on_password(password: Optional[str]) -> None:
            if password is None:
                return
            try:
                self.ctx.session.save_key(path, password)
            except (AESBoxError, OSError) as exc:
                self._fail("save", "saving key/IV", exc)
                return
            self._set_output(f"Key and IV saved successfully to: {path}")

        self.push_screen(
            PasswordModal("Enter a password to protect the key:", confirm=True), on_password
        )

    def action_load_key(self) -> None:
        self.push_screen(
            PathModal("Load Key/IV", "Key file to read", placeholder="/path/to/file.key"),
            self._handle_load_path,
        )

    def _handle_load_path(self, path: Optional[str]) -> None:
        if not path:
            return

        def on_password(password: Optional[str]) -> None:
            if password is None:
                return
            try:
                self.ctx.session.load_key(path, password)
            except (AESBoxError, OSError) as exc:
                self._fail("load", "loading key/IV", exc)
                return
            self._update_key_view()
            self._set_output(f"Key and IV loaded successfully from: {path}")

        self.push_screen(PasswordModal("Enter the password to recover the key:"), on_password)

    def action_toggle_reveal(self) -> None:
        self.reveal_key = not self.reveal_key
        self._update_key_view()

    def action_copy_key(self) -> None:
        try:
            copy_key_material(self.ctx.session.material)
        except AESBoxError as exc:
            self._set_output(describe_error(exc))
            return
        except Exception as exc:  # pyperclip raises its own exception types
            self._set_output(f"Clipboard unavailable: {exc}")
            return
        self.notify("Key and IV copied to clipboard", severity="information")


def main() -> None:
    """Run the AESBox Textual application."""
    try:
        ctx = build_context()
    except ConfigurationError as exc:
        print(describe_error(exc), file=sys.stderr)
        sys.exit(2)
    configure_logging(ctx.config.log_level, filename=ctx.config.log_file)
    AESBoxApp(ctx=ctx).run()


if __name__ == "__main__":  # pragma: no cover
    main()
