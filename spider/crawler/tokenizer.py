"""
Keyword tokenizer for page text.
"""

import re
from typing import List


class Tokenizer:
    """
    Splits page text into keyword tokens.

    Every character that is not a letter, digit, hyphen, underscore or
    apostrophe becomes whitespace; the remaining runs are the tokens.
    Tokens keep their case unless ``fold_case`` is set.
    """

    separator_pattern = re.compile(r"[^\w\-']")

    def __init__(self, fold_case: bool = False):
        self.fold_case = fold_case

    def tokenize(self, text: str) -> List[str]:
        if not text:
            return []

        normalized = self.separator_pattern.sub(' ', text)
        if self.fold_case:
            normalized = normalized.lower()
        return normalized.split()


def tokenize(text: str) -> List[str]:
    """Tokenize with the default, case-sensitive settings."""
    return Tokenizer().tokenize(text)
