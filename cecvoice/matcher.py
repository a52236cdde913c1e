"""
Fuzzy matching of spoken transcripts against registered voice commands.

A keyword matches when the transcript contains it, or, for keywords longer
than a few characters, when the whole transcript is within a small edit
distance of it. Speech recognition regularly mishears single words
("crampage" for "clampage"), which the edit distance tolerates.
"""

from typing import Callable, NamedTuple, Optional, Sequence, Tuple

from cecvoice import config
from cecvoice.debug import debug_log


class VoiceCommand(NamedTuple):
    """A named action triggered by any of its keywords."""

    name: str
    keywords: Tuple[str, ...]
    action: Callable[[], None]


def levenshtein(a: str, b: str) -> int:
    """
    Compute the edit distance between two strings.

    Substitution, insertion and deletion each cost 1.

    Args:
        a: First string
        b: Second string

    Returns:
        Minimum number of single-character edits turning `a` into `b`
    """
    m, n = len(a), len(b)
    table = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(m + 1):
        table[i][0] = i
    for j in range(n + 1):
        table[0][j] = j

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if a[i - 1] == b[j - 1]:
                table[i][j] = table[i - 1][j - 1]
            else:
                table[i][j] = 1 + min(
                    table[i - 1][j - 1],  # substitution
                    table[i][j - 1],  # insertion
                    table[i - 1][j],  # deletion
                )
    return table[m][n]


def max_allowed_errors(keyword: str) -> int:
    """Edit distance tolerated for a normalized keyword."""
    return max(config.FUZZY_MIN_ERRORS, int(len(keyword) * config.FUZZY_ERROR_RATIO))


def is_match(transcript: str, keyword: str) -> bool:
    """
    Check whether a transcript triggers a keyword.

    Args:
        transcript: Text produced by speech recognition
        keyword: Trigger phrase of a command

    Returns:
        True if the keyword is contained in the transcript, or is long enough
        and within the allowed edit distance of the whole transcript
    """
    t = transcript.lower().strip()
    k = keyword.lower().strip()
    if not k:
        return False

    if k in t:
        return True

    # Keywords this short only match by containment
    if len(k) <= config.FUZZY_MIN_KEYWORD_LENGTH:
        return False

    distance = levenshtein(t, k)
    if distance <= max_allowed_errors(k):
        debug_log(f"Fuzzy match found: '{t}' ~= '{k}' (dist: {distance})")
        return True

    return False


def match(transcript: str, commands: Sequence[VoiceCommand]) -> Optional[VoiceCommand]:
    """
    Find the command a transcript invokes.

    Commands are tried in registration order and the first one with a
    matching keyword wins, even if a later command matches more closely.

    Args:
        transcript: Text produced by speech recognition
        commands: Registered commands, in registration order

    Returns:
        The matching command, or None if nothing matches
    """
    for command in commands:
        if any(is_match(transcript, keyword) for keyword in command.keywords):
            return command
    return None
