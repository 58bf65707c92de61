"""Password and passphrase generation and strength scoring for wallet entries.

All randomness comes from :mod:`secrets`; scoring uses zxcvbn.
"""

import math
import re
import secrets
import string
from dataclasses import dataclass
from typing import Any, Dict, List

from zxcvbn import zxcvbn

UPPERCASE = string.ascii_uppercase
LOWERCASE = string.ascii_lowercase
NUMBERS = string.digits
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
SIMILAR_CHARS = "il1Lo0O"

_random = secrets.SystemRandom()

WORDS = (
    "correct", "horse", "battery", "staple", "dragon", "monkey", "sunset", "ocean",
    "mountain", "river", "forest", "thunder", "lightning", "crystal", "phoenix", "tiger",
    "eagle", "falcon", "wolf", "bear", "lion", "panther", "cobra", "viper",
    "galaxy", "nebula", "comet", "meteor", "planet", "stellar", "cosmic", "lunar",
    "solar", "quantum", "atomic", "nuclear", "fusion", "plasma", "photon", "neutron",
    "alpha", "beta", "gamma", "delta", "omega", "sigma", "theta", "lambda",
)


@dataclass(frozen=True)
class PasswordOptions:
    length: int = 16
    uppercase: bool = True
    lowercase: bool = True
    numbers: bool = True
    symbols: bool = True
    exclude_similar: bool = True


PRESETS: Dict[str, PasswordOptions] = {
    "strong": PasswordOptions(),
    "memorable": PasswordOptions(length=12, symbols=False),
    "pin": PasswordOptions(length=6, uppercase=False, lowercase=False, symbols=False, exclude_similar=False),
    "maximum": PasswordOptions(length=32, exclude_similar=False),
}


def _without_similar(chars: str) -> str:
    return "".join(c for c in chars if c not in SIMILAR_CHARS)


def generate_password(options: PasswordOptions = PRESETS["strong"]) -> str:
    """
    Random password with at least one character from every enabled class.

    Raises:
        ValueError: no character class enabled, or length too short to
            hold one character of each enabled class
    """
    classes = [
        chars for enabled, chars in (
            (options.uppercase, UPPERCASE),
            (options.lowercase, LOWERCASE),
            (options.numbers, NUMBERS),
            (options.symbols, SYMBOLS),
        ) if enabled
    ]
    if options.exclude_similar:
        # Symbols contain no look-alikes
        classes = [_without_similar(chars) for chars in classes]
    if not classes:
        raise ValueError("At least one character type must be selected")
    if options.length < len(classes):
        raise ValueError(f"Length {options.length} cannot include all {len(classes)} character types")

    charset = "".join(classes)
    chars = [secrets.choice(chars_of_class) for chars_of_class in classes]
    chars += [secrets.choice(charset) for _ in range(options.length - len(classes))]
    _random.shuffle(chars)
    return "".join(chars)


def generate_passphrase(word_count: int = 4, separator: str = "-", capitalize: bool = True) -> str:
    """Random words joined by ``separator`` with a trailing number 0-99."""
    words = [secrets.choice(WORDS) for _ in range(word_count)]
    if capitalize:
        words = [w.capitalize() for w in words]
    return separator.join(words + [str(secrets.randbelow(100))])


def calculate_entropy(password: str) -> float:
    """Estimated entropy in bits from the character classes present."""
    if not password:
        return 0.0
    charset_size = 0
    if re.search(r"[a-z]", password):
        charset_size += 26
    if re.search(r"[A-Z]", password):
        charset_size += 26
    if re.search(r"[0-9]", password):
        charset_size += 10
    if re.search(r"[^a-zA-Z0-9]", password):
        charset_size += 32
    return len(password) * math.log2(charset_size)


# zxcvbn score (0-4) -> label
STRENGTH_LABELS = ("Very Weak", "Weak", "Fair", "Good", "Strong")

# zxcvbn rejects longer input
_ZXCVBN_MAX_LENGTH = 72


def analyze_password_strength(password: str) -> Dict[str, Any]:
    """
    Score a password with zxcvbn.

    Returns:
        dict with ``score`` (0-4), ``strength`` label, one-line
        ``feedback``, ``crack_time`` (offline slow-hash estimate) and the
        full ``suggestions`` list
    """
    if not password:
        return {
            "score": 0,
            "strength": "none",
            "feedback": "Enter a password",
            "crack_time": "instant",
            "suggestions": [],
        }

    result = zxcvbn(password[:_ZXCVBN_MAX_LENGTH])
    feedback = result["feedback"]
    suggestions: List[str] = list(feedback.get("suggestions") or [])
    return {
        "score": result["score"],
        "strength": STRENGTH_LABELS[result["score"]],
        "feedback": feedback.get("warning") or (suggestions[0] if suggestions else "Good password!"),
        "crack_time": result["crack_times_display"]["offline_slow_hashing_1e4_per_second"],
        "suggestions": suggestions,
    }
