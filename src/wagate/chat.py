from __future__ import annotations

import re
from typing import Final

INDIVIDUAL_SUFFIX: Final[str] = "@c.us"
GROUP_SUFFIX: Final[str] = "@g.us"

_NON_DIGITS = re.compile(r"[^0-9]")


def format_chat_id(raw: str, is_group: bool) -> str:
    """
    Build the canonical chat id the transport addresses messages to.

    Groups keep a raw value that already carries `@g.us`; anything else gets the
    suffix appended. Individuals are reduced to their digits (so `+55 21 99999-9999`
    becomes `5521999999999@c.us`). An address with no digits at all is passed
    through as `@c.us` and left for the transport to reject.
    """

    if is_group:
        return raw if raw.endswith(GROUP_SUFFIX) else f"{raw}{GROUP_SUFFIX}"
    return f"{_NON_DIGITS.sub('', raw)}{INDIVIDUAL_SUFFIX}"
