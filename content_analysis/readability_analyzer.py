"""Readability scoring on raw text.

All three formulas report an "ease" score on a 0-100 scale where higher means
easier to read, so they can be swapped without changing how callers interpret
the number. Grade-level formulas (Gunning Fog, Coleman-Liau) are inverted with
100 - 5 * grade before clamping.

Syllables are counted with a vowel-group heuristic and a naive silent trailing
"e" rule. It is not phonetically exact: "created" counts as two syllables.
"""
import logging
import re
from enum import Enum
from typing import List, Tuple, Union

from statistical_analysis.errors import InvalidInputError
from statistical_analysis.results import ReadabilityLevel, ReadabilityResult

logger = logging.getLogger(__name__)

_SENTENCE_SPLIT = re.compile(r'[.!?]+')
_VOWEL_GROUP = re.compile(r'[aeiouy]+')
_NON_LETTER = re.compile(r'[^a-z]')

COMPLEX_WORD_SYLLABLES = 3
GRADE_TO_EASE_FACTOR = 5

# Confidence saturation points
CONFIDENCE_FULL_WORDS = 100
CONFIDENCE_FULL_SENTENCES = 5
SWEET_SPOT_SENTENCE_LENGTH = (10, 25)

_FLESCH_BANDS = (
    (90, ReadabilityLevel.VERY_EASY),
    (80, ReadabilityLevel.EASY),
    (70, ReadabilityLevel.FAIRLY_EASY),
    (60, ReadabilityLevel.STANDARD),
    (50, ReadabilityLevel.FAIRLY_DIFFICULT),
    (30, ReadabilityLevel.DIFFICULT),
)

_GRADE_BANDS = (
    (80, ReadabilityLevel.EASY),
    (60, ReadabilityLevel.STANDARD),
    (40, ReadabilityLevel.DIFFICULT),
)


class ReadabilityMethod(Enum):
    FLESCH = "flesch"
    GUNNING_FOG = "gunning_fog"
    COLEMAN_LIAU = "coleman_liau"


class ReadabilityAnalyzer:
    """Flesch Reading Ease, Gunning Fog and Coleman-Liau scoring"""

    def calculate_readability_score(
        self,
        text: str,
        method: Union[str, ReadabilityMethod] = 'flesch'
    ) -> ReadabilityResult:
        """Score text on a 0-100 ease scale and map the score to a reading level"""
        readability_method = self._parse_method(method)

        words, sentences = self._tokenize(text or '')
        if not words or not sentences:
            logger.debug("No words or sentences found, readability undetermined")
            return ReadabilityResult(
                score=0.0,
                level=ReadabilityLevel.UNABLE_TO_DETERMINE,
                confidence=0.0,
                method=readability_method.value,
            )

        word_count = len(words)
        sentence_count = len(sentences)
        avg_sentence_length = word_count / sentence_count

        if readability_method == ReadabilityMethod.FLESCH:
            syllable_count = sum(self.count_syllables(word) for word in words)
            avg_syllables_per_word = syllable_count / word_count

            score = 206.835 - 1.015 * avg_sentence_length - 84.6 * avg_syllables_per_word
            score = self._clamp(score)
            level = self._interpret(score, _FLESCH_BANDS)

        elif readability_method == ReadabilityMethod.GUNNING_FOG:
            complex_words = self.count_complex_words(words)
            complex_word_ratio = complex_words / word_count

            fog_index = 0.4 * (avg_sentence_length + 100 * complex_word_ratio)
            score = self._clamp(100 - fog_index * GRADE_TO_EASE_FACTOR)
            level = self._interpret(score, _GRADE_BANDS)

        else:
            letters = sum(1 for char in text if char.isalpha())
            letters_per_100_words = letters / word_count * 100
            sentences_per_100_words = sentence_count / word_count * 100

            cli_index = 0.0588 * letters_per_100_words - 0.296 * sentences_per_100_words - 15.8
            score = self._clamp(100 - cli_index * GRADE_TO_EASE_FACTOR)
            level = self._interpret(score, _GRADE_BANDS)

        return ReadabilityResult(
            score=round(score, 2),
            level=level,
            confidence=round(self.calculate_confidence(word_count, sentence_count), 2),
            method=readability_method.value,
        )

    def count_syllables(self, word: str) -> int:
        """Vowel groups in a word, less a silent trailing 'e'; at least one for any word with letters"""
        letters = _NON_LETTER.sub('', word.lower())
        if not letters:
            return 0

        syllables = len(_VOWEL_GROUP.findall(letters))
        if letters.endswith('e') and syllables > 1:
            syllables -= 1

        return max(1, syllables)

    def count_complex_words(self, words: List[str]) -> int:
        return sum(1 for word in words if self.count_syllables(word) >= COMPLEX_WORD_SYLLABLES)

    def calculate_confidence(self, word_count: int, sentence_count: int) -> float:
        """How much to trust a score given the amount and shape of the text, 0-100"""
        confidence = min(word_count, CONFIDENCE_FULL_WORDS) * 0.4
        confidence += min(sentence_count, CONFIDENCE_FULL_SENTENCES) * 6

        # Bonus for reasonable sentence length
        avg_sentence_length = word_count / sentence_count
        low, high = SWEET_SPOT_SENTENCE_LENGTH
        if low <= avg_sentence_length <= high:
            confidence += 30
        else:
            confidence += max(0.0, 30 - abs(avg_sentence_length - (low + high) / 2) * 2)

        return min(100.0, confidence)

    @staticmethod
    def _tokenize(text: str) -> Tuple[List[str], List[str]]:
        words = text.split()
        sentences = [sentence for sentence in _SENTENCE_SPLIT.split(text) if sentence.strip()]
        return words, sentences

    @staticmethod
    def _clamp(score: float) -> float:
        return max(0.0, min(100.0, score))

    @staticmethod
    def _interpret(score: float, bands) -> ReadabilityLevel:
        for threshold, level in bands:
            if score >= threshold:
                return level
        return ReadabilityLevel.VERY_DIFFICULT

    @staticmethod
    def _parse_method(method: Union[str, ReadabilityMethod]) -> ReadabilityMethod:
        if isinstance(method, ReadabilityMethod):
            return method
        try:
            return ReadabilityMethod(method)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown readability method: {method}") from exc
