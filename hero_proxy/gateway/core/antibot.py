"""
Anti-bot detection.

CDN bot-mitigation layers answer with a challenge or block page instead of
the requested content; those responses are served to the client untouched.
"""

from typing import Iterable

# Cloudflare-style challenge/block statuses
CHALLENGE_STATUS_CODES = frozenset({403, 503})


def is_challenge_status(status_code: int, codes: Iterable[int] = CHALLENGE_STATUS_CODES) -> bool:
    return status_code in codes
