"""
Records produced by the document workflow.
"""

from typing import List, Literal

from pydantic import Field, field_validator

from aurix.utils.validation import CamelModel

Complexity = Literal["low", "medium", "high"]
ContentType = Literal["explanation", "tutorial", "discussion", "brainstorming", "other"]
DiagramType = Literal["flowchart", "sequence", "class", "state", "er", "mindmap"]


class DocumentConfig(CamelModel):
    generate_diagrams: bool = True
    target_audience: Literal["beginner", "intermediate", "expert"] = "intermediate"
    document_style: Literal["technical", "tutorial", "reference"] = "technical"
    max_section_length: int = Field(500, gt=0, description="Maximum words per generated section")


class TranscriptSegment(CamelModel):
    text: str
    index: int
    confidence: float = Field(0.95, ge=0, le=1)


class ContentAnalysis(CamelModel):
    topics: List[str] = Field(default_factory=list)
    complexity: Complexity = "medium"
    content_type: ContentType = "other"
    key_points: List[str] = Field(default_factory=list)
    suggested_sections: List[str] = Field(default_factory=list)

    @field_validator("complexity", "content_type", mode="before")
    @classmethod
    def _lowercase(cls, value):
        return value.lower() if isinstance(value, str) else value


class DocumentSection(CamelModel):
    title: str
    content: str
    level: int = Field(1, ge=1, le=6)
    order: int = 0


class DiagramSpec(CamelModel):
    type: DiagramType
    title: str
    description: str
    mermaid_code: str


class CognitiveLoadMetrics(CamelModel):
    word_count: int
    sentence_count: int
    average_words_per_sentence: float
    technical_term_count: int
    conceptual_density: float = Field(..., ge=0, le=1)
    estimated_reading_time: float = Field(..., description="Minutes at 225 words per minute")


class StageTiming(CamelModel):
    stage: str
    milliseconds: float
