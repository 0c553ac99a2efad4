"""
Cognitive load (θ) of the generated document.

θ is 0-100 and adds four parts of up to 25 points each: sentence length,
technical-term density, conceptual density and the analysed complexity.
"""

import re
from typing import Any, Dict, List, Optional

from aurix.logger import get_logger
from aurix.workflows.document.nodes.base import DocumentNode
from aurix.workflows.document.nodes.transcription import SENTENCE
from aurix.workflows.document.schemas import CognitiveLoadMetrics, ContentAnalysis

logger = get_logger(__name__)

WORDS_PER_MINUTE = 225
DEFAULT_THETA = 50

TECHNICAL_PATTERNS = [
    re.compile(r"^[A-Z]{2,}$"),     # acronyms
    re.compile(r"\d+"),
    re.compile(r"^[a-z]+[A-Z]"),    # camelCase
    re.compile(r"_"),               # snake_case
    re.compile(r"\(\)"),            # calls
    re.compile(
        r"^(algo|api|async|auth|cache|cli|cpu|crud|css|db|debug|dev|dns|dom|dto|env|gui|html|http|ide|ipc|json"
        r"|jwt|lib|log|npm|orm|os|ram|regex|req|res|sdk|sql|ssh|ssl|tcp|tls|ui|url|uuid|vm|xml)$",
        re.IGNORECASE,
    ),
]
TECHNICAL_SUFFIXES = ("tion", "ment", "ity", "ness", "ism", "ize", "ify", "ate")
CONCEPT_PATTERNS = [
    re.compile(r"\b(\w+\s+\w+)\s+(system|method|approach|technique|process|model)", re.IGNORECASE),
    re.compile(r"\b(data\s+\w+|machine\s+\w+|artificial\s+\w+)", re.IGNORECASE),
]
COMPLEXITY_POINTS = {"low": 5, "medium": 15, "high": 25}


def is_technical(word: str) -> bool:
    if any(pattern.search(word) for pattern in TECHNICAL_PATTERNS):
        return True
    if len(word) > 8:
        return word.lower().endswith(TECHNICAL_SUFFIXES)
    return len(word) > 12


def conceptual_density(content: str) -> float:
    """Unique concepts per 100 words, scaled so 10 per 100 words is 1.0."""
    concepts = set()
    for sentence in SENTENCE.findall(content):
        words = sentence.split()
        for word in words[1:]:
            if re.match(r"^[A-Z][a-z]+", word) and len(word) > 3:
                concepts.add(word.lower())
        for pattern in CONCEPT_PATTERNS:
            concepts.update(match.group(0).lower() for match in pattern.finditer(sentence))

    word_count = len(content.split()) or 1
    return min(1.0, (len(concepts) / word_count * 100) / 10)


def cognitive_metrics(content: str) -> CognitiveLoadMetrics:
    words: List[str] = content.split()
    sentence_count = len(re.findall(r"[.!?]+", content)) or 1
    return CognitiveLoadMetrics(
        word_count=len(words),
        sentence_count=sentence_count,
        average_words_per_sentence=len(words) / sentence_count,
        technical_term_count=sum(1 for word in words if is_technical(word)),
        conceptual_density=conceptual_density(content),
        estimated_reading_time=len(words) / WORDS_PER_MINUTE,
    )


def theta_score(metrics: CognitiveLoadMetrics, analysis: Optional[ContentAnalysis]) -> int:
    score = 0.0

    # Sentence length: 15-20 words is the comfortable range
    average = metrics.average_words_per_sentence
    if average < 10:
        score += 10
    elif average > 25:
        score += min(25, (average - 25) * 2)
    elif average > 20:
        score += (average - 20) * 2
    else:
        score += 5

    if metrics.word_count:
        density = metrics.technical_term_count / metrics.word_count * 100
        score += min(25, density * 2.5)

    score += min(25, metrics.conceptual_density * 25)
    score += COMPLEXITY_POINTS[analysis.complexity] if analysis is not None else 15

    return max(0, min(100, round(score)))


class CognitiveLoadNode(DocumentNode):
    name = "cognitive_load"

    async def invoke(self, state: Dict[str, Any]) -> Dict[str, Any]:
        content = state.get("final_document") or state.get("transcript")
        if not content:
            logger.warning("No content for cognitive load calculation")
            return {
                "cognitive_load_index": DEFAULT_THETA,
                "warnings": ["Cognitive load calculation failed: no content available"],
            }

        metrics = cognitive_metrics(content)
        theta = theta_score(metrics, state.get("analysis"))
        logger.info("Cognitive load θ = %d", theta)
        return {"cognitive_load_index": theta, "cognitive_metrics": metrics}
