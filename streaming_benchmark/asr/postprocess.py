"""ASR post-processing: artifact removal and word splitting.

Whisper emits bracketed non-speech tags on silence or music (for example
``[BLANK_AUDIO]`` or ``(MUSIC)``). They are stripped before words are
compared across hypotheses, otherwise a tag at the audio edge would
block agreement.
"""

import re

KNOWN_ARTIFACTS = ("[BLANK_AUDIO]", "(BLANK_AUDIO)", "[MUSIC]", "(MUSIC)")

# Any [TAG] or (TAG) made only of upper-case letters, digits and underscores
_TAG_PATTERN = re.compile(r"\[[A-Z0-9_]+\]|\([A-Z0-9_]+\)")
_WHITESPACE = re.compile(r"\s+")


def clean_transcription(text: str) -> str:
    """Remove recognizer artifacts and collapse whitespace.

    Args:
        text: Raw engine output.

    Returns:
        Cleaned text; empty string when nothing but artifacts remained.
    """
    for artifact in KNOWN_ARTIFACTS:
        text = text.replace(artifact, " ")
    text = _TAG_PATTERN.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def split_words(text: str) -> list[str]:
    """Clean text and split it into whitespace-delimited words."""
    cleaned = clean_transcription(text)
    return cleaned.split() if cleaned else []
