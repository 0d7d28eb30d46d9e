"""Terminal-facing collaborators: key input, external editor, consoles."""

from .editor import EditError, ExternalEditor
from .keys import KeyReader, TerminalInterrupt, decode_key
from .streams import controlling_terminal, create_consoles

__all__ = [
    "EditError",
    "ExternalEditor",
    "KeyReader",
    "TerminalInterrupt",
    "controlling_terminal",
    "create_consoles",
    "decode_key",
]
