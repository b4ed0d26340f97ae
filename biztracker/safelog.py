# SPDX-License-Identifier: AGPL-3.0-or-later
"""Logger class that scrubs API credentials from log records."""

import logging
import os
import re
from numbers import Number

_PATTERNS = [
    r"(?i)bearer\s+[A-Za-z0-9._-]+",
    os.getenv("BIZTRACKER_API_TOKEN") or "",
]


def _compile_pattern(pat: str):
    if not pat:
        return None
    if pat.startswith("(?i)"):
        return re.compile(pat, re.IGNORECASE)
    return re.compile(re.escape(pat), re.IGNORECASE)


_REDACT_COMPILED = [rx for rx in (_compile_pattern(p) for p in _PATTERNS) if rx]


def register_secret(secret: str) -> None:
    """Redact ``secret`` from every record logged after this call."""

    if secret:
        _REDACT_COMPILED.append(re.compile(re.escape(secret), re.IGNORECASE))


def _redact(s):
    if isinstance(s, Number):
        return s
    t = str(s)
    for rx in _REDACT_COMPILED:
        t = rx.sub("***", t)
    return t


class SafeLogger(logging.Logger):
    def _log(self, level, msg, args, **kw):
        if isinstance(args, tuple):
            args = tuple(_redact(a) for a in args)
        super()._log(level, _redact(str(msg)), args, **kw)


logging.setLoggerClass(SafeLogger)
logger = logging.getLogger("biztracker")
