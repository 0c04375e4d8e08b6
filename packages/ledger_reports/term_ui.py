"""Terminal prompts (prompt_toolkit-based) used by the CLI.

Kept apart from the report code so the prompts can be driven in tests with a
pipe input and a dummy output.
"""

from __future__ import annotations

from prompt_toolkit import PromptSession
from prompt_toolkit.validation import Validator


def prompt_password(
    *,
    message: str = "Reports password: ",
    session: PromptSession | None = None,
) -> str:
    """Read a password with masked input; empty input is rejected."""

    non_empty = Validator.from_callable(
        lambda text: bool(text.strip()),
        error_message="Password cannot be empty",
        move_cursor_to_end=True,
    )
    sess: PromptSession = session or PromptSession()
    return sess.prompt(message, is_password=True, validator=non_empty, validate_while_typing=False)


__all__ = ["prompt_password"]
