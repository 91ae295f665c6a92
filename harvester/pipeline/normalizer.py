"""
Normalizer Module

Cosmetic clean-up applied around parsing:
- ``normalize_markup`` collapses incidental newlines/indentation in raw markup
- ``TextCleaner`` tidies extracted field values (entities, whitespace, emojis)
"""

import html
import re
import unicodedata
from typing import Any, Callable, Dict, List


# Any whitespace run containing a line break
NEWLINE_RUNS = re.compile(r'[ \t\f\v]*\r?\n\s*')


def normalize_markup(markup: str) -> str:
    """
    Collapse newline-bearing whitespace runs and trim the markup.

    Each run that contains a line break collapses to a single space, also
    between two tags, so the text of neighbouring inline elements keeps
    its word break.

    Args:
        markup: Raw markup

    Returns:
        Normalized markup ("" for empty input)
    """
    if not markup:
        return ""

    return NEWLINE_RUNS.sub(' ', markup).strip()


# Emoticons, pictographs, transport symbols, flags and dingbats
EMOJI = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF\U00002702-\U000027B0]+"
)
CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]')
WHITESPACE = re.compile(r'\s+')


class TextCleaner:
    """
    Tidies string values of extracted records.

    The steps run in a fixed order: entity decoding, control character
    removal, NFKC folding, emoji removal, whitespace collapse, then any
    custom cleaners in the order they were added.

    Example:
        cleaner = TextCleaner(remove_emojis=True)
        cleaner.clean_text("  Caf&eacute;   \U0001F600 ")
        # Returns: "Café"
    """

    def __init__(
        self,
        remove_emojis: bool = False,
        normalize_unicode: bool = True,
        decode_html: bool = True,
        strip_whitespace: bool = True,
    ):
        """
        Args:
            remove_emojis: Drop emoji characters
            normalize_unicode: Fold compatibility characters (NFKC)
            decode_html: Decode entities the parser left in place
            strip_whitespace: Collapse whitespace runs and trim
        """
        steps: List[Callable[[str], str]] = []
        if decode_html:
            steps.append(html.unescape)
        steps.append(lambda text: CONTROL_CHARS.sub('', text))
        if normalize_unicode:
            steps.append(lambda text: unicodedata.normalize("NFKC", text))
        if remove_emojis:
            steps.append(lambda text: EMOJI.sub('', text))
        if strip_whitespace:
            steps.append(lambda text: WHITESPACE.sub(' ', text).strip())
        self._steps = steps

    def add_cleaner(self, func: Callable[[str], str]) -> None:
        """Append a custom step, run after the built-in ones."""
        self._steps.append(func)

    def clean_text(self, text: str) -> str:
        if not text:
            return ""
        for step in self._steps:
            text = step(text)
        return text

    def clean_value(self, value: Any) -> Any:
        """Clean strings, recursing into lists and dicts; other values pass through."""
        if isinstance(value, str):
            return self.clean_text(value)
        if isinstance(value, dict):
            return self.clean_record(value)
        if isinstance(value, list):
            return [self.clean_value(item) for item in value]
        return value

    def clean_record(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Return a copy of a record with every string value cleaned.

        ``None`` (absent) and boolean values are left untouched.
        """
        return {key: self.clean_value(value) for key, value in record.items()}
