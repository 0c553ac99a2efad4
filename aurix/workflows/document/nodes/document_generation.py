import re
from typing import Any, Dict, List, Optional

from aurix.logger import get_logger
from aurix.services.llm import LLMService
from aurix.workflows.document.nodes.base import DocumentNode
from aurix.workflows.document.nodes.transcription import SENTENCE
from aurix.workflows.document.prompts import (
    WRITER_SYSTEM_PROMPT,
    conclusion_prompt,
    introduction_prompt,
    section_prompt,
)
from aurix.workflows.document.schemas import ContentAnalysis, DocumentConfig, DocumentSection

logger = get_logger(__name__)

CONCLUSION_ORDER = 999


def clean_markdown(content: str) -> str:
    content = re.sub(r"```\s*```", "", content.strip())   # empty code blocks
    content = re.sub(r"\n{3,}", "\n\n", content)
    return re.sub(r"^#+\s*$", "", content, flags=re.MULTILINE)  # empty headers


def relevant_content(transcript: str, title: str, key_points: List[str], limit: int = 5) -> str:
    """Transcript sentences mentioning the section title or a key point."""
    keywords = [word for word in title.lower().split() if len(word) > 3]
    selected = []
    for sentence in SENTENCE.findall(transcript):
        lower = sentence.lower()
        if any(keyword in lower for keyword in keywords) or any(point[:20] in sentence for point in key_points):
            selected.append(sentence.strip())
    return " ".join(selected[:limit])


def fallback_sections(transcript: str, analysis: Optional[ContentAnalysis]) -> List[DocumentSection]:
    """Sections built without the LLM."""
    topics = ", ".join(analysis.topics) if analysis and analysis.topics else "Various topics"
    sections = [
        DocumentSection(
            title="Overview",
            content=f"This document presents the key points from the recorded session.\n\n**Topics covered:** {topics}",
            level=1,
            order=0,
        )
    ]
    if analysis and analysis.key_points:
        sections.append(DocumentSection(
            title="Key Points",
            content="\n\n".join(f"{i}. {point}" for i, point in enumerate(analysis.key_points, start=1)),
            level=2,
            order=1,
        ))
    sections.append(DocumentSection(
        title="Full Transcript",
        content=f"The complete transcript of the session:\n\n{transcript}",
        level=2,
        order=2,
    ))
    return sections


class DocumentGenerationNode(DocumentNode):
    """Writes introduction, body sections and conclusion from the analysis."""

    name = "document_generation"

    def __init__(self, llm: Optional[LLMService]):
        self.llm = llm

    async def invoke(self, state: Dict[str, Any]) -> Dict[str, Any]:
        transcript = state.get("transcript") or ""
        analysis: Optional[ContentAnalysis] = state.get("analysis")
        config: DocumentConfig = state.get("config") or DocumentConfig()

        if analysis is None or not state.get("llm_available") or self.llm is None:
            reason = "no analysis available" if analysis is None else "LLM unavailable"
            return {
                "document_sections": fallback_sections(transcript, analysis),
                "warnings": [f"Document generation used fallback: {reason}"],
            }

        sections = [await self._introduction(analysis, config)]
        sections.extend(await self._main_sections(transcript, analysis, config))
        sections.append(await self._conclusion(analysis, config))
        logger.info("Generated %d sections", len(sections))
        return {"document_sections": sections}

    async def _introduction(self, analysis: ContentAnalysis, config: DocumentConfig) -> DocumentSection:
        prompt = introduction_prompt(analysis.topics, config.document_style, config.target_audience, analysis.content_type)
        try:
            content = clean_markdown(await self.llm.generate(prompt, system=WRITER_SYSTEM_PROMPT))
        except Exception as exc:
            logger.warning("Failed to generate introduction: %s", exc)
            content = (
                f"This document covers {', '.join(analysis.topics)}. "
                "The following sections will explore these topics in detail."
            )
        return DocumentSection(title="Introduction", content=content, level=1, order=0)

    async def _main_sections(
        self, transcript: str, analysis: ContentAnalysis, config: DocumentConfig
    ) -> List[DocumentSection]:
        titles = analysis.suggested_sections or [f"Understanding {topic}" for topic in analysis.topics[:3]]
        sections = []
        for position, title in enumerate(titles):
            context = relevant_content(transcript, title, analysis.key_points)
            points = [point for i, point in enumerate(analysis.key_points) if i % len(titles) == position]
            prompt = section_prompt(
                title, config.document_style, config.target_audience, config.max_section_length, context, points
            )
            try:
                content = clean_markdown(await self.llm.generate(prompt, system=WRITER_SYSTEM_PROMPT))
            except Exception as exc:
                logger.warning("Failed to generate section %r: %s", title, exc)
                content = context or f"Content for {title} is being processed."
            sections.append(DocumentSection(title=title, content=content, level=2, order=position + 1))
        return sections

    async def _conclusion(self, analysis: ContentAnalysis, config: DocumentConfig) -> DocumentSection:
        prompt = conclusion_prompt(analysis.topics, analysis.key_points, config.document_style, config.target_audience)
        try:
            content = clean_markdown(await self.llm.generate(prompt, system=WRITER_SYSTEM_PROMPT))
        except Exception as exc:
            logger.warning("Failed to generate conclusion: %s", exc)
            takeaways = "\n".join(f"- {point}" for point in analysis.key_points)
            content = f"In this document, we explored {', '.join(analysis.topics)}. The key takeaways include:\n\n{takeaways}"
        return DocumentSection(title="Conclusion", content=content, level=1, order=CONCLUSION_ORDER)
