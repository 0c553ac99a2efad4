import json
import re
from collections import Counter
from typing import Any, Dict, List, Optional

from aurix.engine import ValidationError
from aurix.logger import get_logger
from aurix.services.llm import LLMService
from aurix.utils.validation import validate_record
from aurix.workflows.document.nodes.base import DocumentNode
from aurix.workflows.document.nodes.transcription import SENTENCE
from aurix.workflows.document.prompts import ANALYSIS_SYSTEM_PROMPT, analysis_prompt
from aurix.workflows.document.schemas import ContentAnalysis, DocumentConfig

logger = get_logger(__name__)

COMMON_WORDS = frozenset("""
the a an and or but in on at to for of with by from is are was were been be have has had do does did
will would could should may might can this that these those i you he she it we they them their what
which who when where why how
""".split())

FALLBACK_SECTIONS = ["Introduction", "Main Content", "Conclusion"]


def extract_basic_topics(transcript: str, limit: int = 5) -> List[str]:
    """Most frequent non-trivial words."""
    words = [word for word in transcript.lower().split() if len(word) > 3 and word not in COMMON_WORDS]
    return [word for word, _ in Counter(words).most_common(limit)]


def extract_key_points(transcript: str, limit: int = 5) -> List[str]:
    """First sentence and every third one after it."""
    sentences = SENTENCE.findall(transcript)
    return [sentence.strip() for sentence in sentences[::3][:limit]]


def _bullets(text: str, heading: str) -> Optional[List[str]]:
    match = re.search(rf"{heading}:?\s*([\s\S]*?)(?=\n\n|\n[A-Z]|$)", text, re.IGNORECASE)
    if not match:
        return None
    lines = [re.sub(r"^[-*•]\s*", "", line).strip() for line in match.group(1).split("\n")]
    return [line for line in lines if line]


def _complexity(text: str) -> str:
    lower = text.lower()
    if any(marker in lower for marker in ("low complexity", "simple", "basic")):
        return "low"
    if any(marker in lower for marker in ("high complexity", "complex", "advanced")):
        return "high"
    return "medium"


def _content_type(text: str) -> str:
    lower = text.lower()
    for content_type in ("explanation", "tutorial", "discussion", "brainstorming"):
        if content_type in lower:
            return content_type
    return "other"


def parse_analysis(response: str) -> ContentAnalysis:
    """Parse the model reply: JSON when present, loose headings otherwise."""
    match = re.search(r"\{[\s\S]*\}", response)
    if match:
        try:
            return validate_record(ContentAnalysis, json.loads(match.group(0)), "content analysis")
        except (ValueError, ValidationError) as exc:
            logger.warning("Failed to parse analysis JSON: %s", exc)

    return ContentAnalysis(
        topics=_bullets(response, "topics") or [],
        complexity=_complexity(response),
        content_type=_content_type(response),
        key_points=_bullets(response, "key points") or [],
        suggested_sections=_bullets(response, "sections") or [],
    )


def fallback_analysis(transcript: str) -> ContentAnalysis:
    return ContentAnalysis(
        topics=extract_basic_topics(transcript),
        complexity="medium",
        content_type="other",
        key_points=extract_key_points(transcript),
        suggested_sections=list(FALLBACK_SECTIONS),
    )


class AnalysisNode(DocumentNode):
    """Asks the LLM for a structured analysis of the transcript."""

    name = "analysis"

    def __init__(self, llm: LLMService):
        self.llm = llm

    async def invoke(self, state: Dict[str, Any]) -> Dict[str, Any]:
        transcript = state.get("transcript") or ""
        config: DocumentConfig = state.get("config") or DocumentConfig()
        try:
            if not transcript.strip():
                raise ValueError("No transcript available for analysis")
            response = await self.llm.generate(
                analysis_prompt(transcript, config.target_audience),
                system=ANALYSIS_SYSTEM_PROMPT,
            )
            analysis = parse_analysis(response)
        except Exception as exc:
            logger.warning("Analysis failed, using fallback: %s", exc)
            return {
                "analysis": fallback_analysis(transcript),
                "warnings": [f"Analysis used fallback mode: {exc}"],
            }

        logger.info("Analysis found %d topics (%s complexity)", len(analysis.topics), analysis.complexity)
        return {"analysis": analysis}
