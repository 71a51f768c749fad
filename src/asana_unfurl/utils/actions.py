"""
GitHub Actions workflow helpers: step outputs and failure annotations.
"""

import uuid
import logging
from typing import Optional

logger = logging.getLogger('asana_unfurl')


def set_output(name: str, value: str, output_file: Optional[str] = None) -> None:
    """
    Publish a step output.

    Appends to the GITHUB_OUTPUT file when one is given; otherwise the value
    is only logged (e.g. when running from a terminal).
    """
    value = str(value)
    if not output_file:
        logger.info("Output %s=%s", name, value)
        return

    with open(output_file, 'a', encoding='utf-8') as f:
        if '\n' in value:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
        else:
            f.write(f"{name}={value}\n")


def escape_command_data(message: str) -> str:
    return message.replace('%', '%25').replace('\r', '%0D').replace('\n', '%0A')


def set_failed(message: str) -> None:
    """Emit an error annotation for the workflow run."""
    print(f"::error::{escape_command_data(message)}", flush=True)
