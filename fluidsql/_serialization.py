"""JSON encoding used by the structured log formatter.

msgspec is used when it is installed, the standard library otherwise.
"""

import json
from typing import Any

from fluidsql.typing import MSGSPEC_INSTALLED

__all__ = ("encode_json",)


def encode_json(data: Any) -> str:
    """Encode ``data`` to a JSON string, rendering unknown types with ``str``.

    Args:
        data: Value to encode.

    Returns:
        The JSON text.
    """
    if MSGSPEC_INSTALLED:
        import msgspec

        return msgspec.json.encode(data, enc_hook=str).decode("utf-8")
    return json.dumps(data, default=str)
