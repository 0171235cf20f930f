"""GitHub Actions workflow commands and step outputs."""

import os
import sys
import uuid
from typing import Optional, TextIO

from loguru import logger


def escape_data(value: str) -> str:
    """Escape a workflow command message."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def set_output(name: str, value: str, path: Optional[str] = None) -> bool:
    """
    Append a step output to the ``GITHUB_OUTPUT`` file.

    Values are written with a random heredoc delimiter so multi-line summaries
    survive intact. Returns False when not running inside Actions.
    """
    path = path or os.environ.get("GITHUB_OUTPUT")
    if not path:
        logger.debug(f"GITHUB_OUTPUT not set, skipping output {name}")
        return False

    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(path, "a", encoding="utf-8") as fh:
        fh.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
    return True


def set_failed(message: str, stream: Optional[TextIO] = None) -> None:
    """Emit an ``::error::`` annotation for the failed step."""
    stream = stream or sys.stdout
    stream.write(f"::error::{escape_data(message)}\n")
    stream.flush()
