"""
Data Ingestion - Numeric Normalizer.

============================================================
RESPONSIBILITY
============================================================
Turns locale-formatted exchange text into floats.

- "1,234.50" -> 1234.5
- "▼ -2.48"  -> -2.48 (change column mixes glyphs and value)
- Never raises, never returns NaN or infinity

============================================================
"""

import math
import re
from typing import Any, Union


# Signed decimal token; the change value is the trailing one
_SIGNED_DECIMAL = re.compile(r"[-+]?\d*\.?\d+")


def parse_number(text: Union[str, float, int, None]) -> float:
    """
    Parse a number that may carry thousands separators.

    Args:
        text: Cell text (already numeric values pass through)

    Returns:
        Parsed value, or 0.0 for empty/unparsable input
    """
    if text is None:
        return 0.0

    if isinstance(text, (int, float)) and not isinstance(text, bool):
        value = float(text)
    else:
        clean = str(text).replace(",", "").strip()
        if not clean:
            return 0.0
        try:
            value = float(clean)
        except ValueError:
            return 0.0

    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def parse_signed_change(text: Any) -> float:
    """
    Extract the signed change value from a change cell.

    Args:
        text: Change text such as "+▲ 0.66" or "-▼ -2.48"

    Returns:
        The last signed decimal token, or 0.0 if there is none
    """
    if text is None:
        return 0.0

    matches = _SIGNED_DECIMAL.findall(str(text))
    if not matches:
        return 0.0

    try:
        value = float(matches[-1])
    except ValueError:
        return 0.0
    return 0.0 if math.isinf(value) else value
