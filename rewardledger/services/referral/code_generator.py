"""
Referral code generation.

Codes are a username prefix plus random characters, e.g. ``ALICK7Q2``.
"""

import random
import re
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits
PREFIX_LENGTH = 4
RANDOM_LENGTH = 4
MAX_ATTEMPTS = 10

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_system_random = random.SystemRandom()


def username_prefix(username: str) -> str:
    """First alphanumeric characters of username, upper-cased, X-padded."""
    cleaned = _NON_ALNUM.sub("", username).upper()[:PREFIX_LENGTH]
    return cleaned.ljust(PREFIX_LENGTH, "X")


def generate_referral_code(
    username: str, rng: random.Random | None = None
) -> str:
    """
    Build one candidate referral code.

    Args:
        username: Account username
        rng: Random source (system randomness when None)

    Returns:
        8-character code from [A-Z0-9]
    """
    rng = rng or _system_random
    suffix = "".join(rng.choice(CODE_ALPHABET) for _ in range(RANDOM_LENGTH))
    return username_prefix(username) + suffix
