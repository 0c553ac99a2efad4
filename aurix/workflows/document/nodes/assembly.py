import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from aurix.engine import StageFault
from aurix.logger import get_logger
from aurix.workflows.document.nodes.base import DocumentNode
from aurix.workflows.document.schemas import ContentAnalysis, DiagramSpec, DocumentSection
from aurix.workflows.document.state import processing_time_ms

logger = get_logger(__name__)

TOC_MIN_SECTIONS = 4


def metadata_header(session_id: str, analysis: Optional[ContentAnalysis], today: str) -> str:
    title = ", ".join(analysis.topics) if analysis and analysis.topics else "Transcribed Document"
    return "\n".join([
        "---",
        f'title: "{title}"',
        f"date: {today}",
        f"sessionId: {session_id}",
        f"complexity: {analysis.complexity if analysis else 'unknown'}",
        f"contentType: {analysis.content_type if analysis else 'unknown'}",
        "---",
    ])


def anchor(title: str) -> str:
    return re.sub(r"[^a-z0-9-]", "", re.sub(r"\s+", "-", title.lower()))


def table_of_contents(sections: List[DocumentSection]) -> str:
    lines = ["## Table of Contents\n"]
    for section in sections:
        indent = "  " * max(0, section.level - 1)
        lines.append(f"{indent}- [{section.title}](#{anchor(section.title)})")
    return "\n".join(lines)


def format_section(section: DocumentSection) -> str:
    return f"{'#' * section.level} {section.title}\n\n{section.content}"


def format_diagram(diagram: DiagramSpec) -> str:
    return "\n".join([
        f"### {diagram.title}",
        "",
        diagram.description,
        "",
        "```mermaid",
        diagram.mermaid_code,
        "```",
    ])


def relevant_diagrams(section: DocumentSection, diagrams: List[DiagramSpec]) -> List[DiagramSpec]:
    text = f"{section.title} {section.content}".lower()
    keyword = {"flowchart": "process", "sequence": "interaction", "state": "state"}
    selected = []
    for diagram in diagrams:
        if diagram.type in keyword and keyword[diagram.type] in text:
            selected.append(diagram)
        elif diagram.type == "mindmap" and section.order == 0:
            selected.append(diagram)
    return selected


def footer(processing_ms: float, warnings: List[str]) -> str:
    lines = ["---", "", "*This document was automatically generated by Aurix.*"]
    if processing_ms:
        lines.append(f"*Processing time: {processing_ms / 1000:.2f} seconds*")
    if warnings:
        lines.extend(["", "### Generation Notes"])
        lines.extend(f"- {warning}" for warning in warnings)
    return "\n".join(lines)


def fallback_document(state: Dict[str, Any], today: str) -> str:
    analysis: Optional[ContentAnalysis] = state.get("analysis")
    sections: List[DocumentSection] = state.get("document_sections") or []
    diagrams: List[DiagramSpec] = state.get("diagrams") or []

    parts = ["# Transcribed Document", "", f"*Generated on {today}*", ""]
    if analysis is not None:
        parts.extend([
            "## Summary", "",
            f"**Topics:** {', '.join(analysis.topics)}",
            f"**Complexity:** {analysis.complexity}",
            f"**Type:** {analysis.content_type}",
            "",
        ])
        if analysis.key_points:
            parts.extend(["### Key Points", ""])
            parts.extend(f"- {point}" for point in analysis.key_points)
            parts.append("")

    if sections:
        for section in sections:
            parts.extend([format_section(section), ""])
    elif state.get("transcript"):
        parts.extend(["## Transcript", "", state["transcript"]])

    if diagrams:
        parts.extend(["", "## Diagrams", ""])
        for diagram in diagrams:
            parts.extend([format_diagram(diagram), ""])
    return "\n".join(parts)


class AssemblyNode(DocumentNode):
    """Combines sections and diagrams into the final Markdown document."""

    name = "assembly"

    def __init__(self, today=None):
        self.today = today or (lambda: datetime.now(timezone.utc).date().isoformat())

    def assemble(self, state: Dict[str, Any]) -> str:
        sections: List[DocumentSection] = state.get("document_sections") or []
        if not sections:
            raise ValueError("No document sections available for assembly")

        ordered = sorted(sections, key=lambda section: section.order)
        diagrams: List[DiagramSpec] = state.get("diagrams") or []

        parts = [metadata_header(state.get("session_id") or "", state.get("analysis"), self.today())]
        if len(ordered) >= TOC_MIN_SECTIONS:
            parts.append(table_of_contents(ordered))
        for section in ordered:
            parts.append(format_section(section))
            parts.extend(format_diagram(diagram) for diagram in relevant_diagrams(section, diagrams))
        parts.append(footer(processing_time_ms(state), state.get("warnings") or []))
        return "\n\n".join(parts)

    async def invoke(self, state: Dict[str, Any]) -> Dict[str, Any]:
        try:
            document = self.assemble(state)
        except Exception as exc:
            logger.error("Assembly failed: %s", exc)
            fault = StageFault(f"Assembly failed: {exc}", stage=self.name)
            return {"final_document": fallback_document(state, self.today()), "errors": [fault.to_record()]}

        logger.info("Assembled document of %d characters", len(document))
        return {"final_document": document}
