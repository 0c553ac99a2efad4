import asyncio
import json

import pytest

from aurix.events import EventType
from aurix.handlers import handle_document_result
from aurix.services.llm import DiagramService, LLMService
from aurix.workflows.document import run_document_workflow
from aurix.workflows.document.nodes import AssemblyNode
from aurix.workflows.document.nodes.analysis import fallback_analysis, parse_analysis
from aurix.workflows.document.nodes.cognitive_load import cognitive_metrics, theta_score
from aurix.workflows.document.nodes.diagram_generation import detect_opportunities, extract_mermaid
from aurix.workflows.document.nodes.transcription import clean_transcript, split_sentences
from aurix.workflows.document.schemas import ContentAnalysis, DocumentSection
from tests.helpers import fake_llm

TRANSCRIPT = (
    "Caching is a process that speeds up reads.   The client sends a request to the cache ."
    " Then the cache returns a response or falls back to the database."
    " Invalidation is hard because data changes!"
)

ANALYSIS = json.dumps({
    "topics": ["caching", "latency"],
    "complexity": "High",
    "contentType": "explanation",
    "keyPoints": ["Caches reduce latency", "Invalidation is hard"],
    "suggestedSections": ["How caching works", "Invalidation"],
})


class FailingLLM(LLMService):
    async def generate(self, prompt, system=""):
        raise RuntimeError("quota exceeded")


def full_context(make_context):
    llm = fake_llm(
        ANALYSIS,
        "Caching keeps hot data close.",
        "The process starts when a client sends a request.",
        "Invalidation removes stale entries.",
        "Caching is worth the effort.",
    )
    diagrams = DiagramService(fake_llm(
        "```mermaid\nflowchart TD\n    A[Request] --> B{Hit?}\n```",
        "```mermaid\nsequenceDiagram\n    Client->>Cache: get\n```",
        "stateDiagram-v2\n    [*] --> Fresh\n    Fresh --> Stale",
    ))
    return make_context(llm=llm, diagrams=diagrams)


def test_full_path_builds_a_structured_document(make_context):
    result = asyncio.run(run_document_workflow(full_context(make_context), TRANSCRIPT, session_id="doc_1"))

    assert result.ok
    assert result["warnings"] == []
    assert result.trace == [
        ["check_services"],
        ["transcription"],
        ["analysis"],
        ["document_generation", "diagram_generation"],
        ["assembly"],
        ["cognitive_load"],
    ]

    analysis = result["analysis"]
    assert analysis.complexity == "high"
    assert analysis.suggested_sections == ["How caching works", "Invalidation"]

    sections = result["document_sections"]
    assert [s.title for s in sections] == ["Introduction", "How caching works", "Invalidation", "Conclusion"]
    assert [d.type for d in result["diagrams"]] == ["flowchart", "sequence", "state"]

    document = result["final_document"]
    assert document.startswith("---\ntitle: \"caching, latency\"")
    assert "sessionId: doc_1" in document
    assert "## Table of Contents" in document
    assert "# Introduction\n\nCaching keeps hot data close." in document
    assert "## How caching works" in document
    assert "```mermaid\nflowchart TD" in document
    assert document.index("# Conclusion") > document.index("## Invalidation")

    assert 0 <= result["cognitive_load_index"] <= 100
    assert result["cognitive_metrics"].word_count > 0
    assert [t.stage for t in result["stage_timings"]] == [
        "check_services", "transcription", "analysis",
        "document_generation", "diagram_generation", "assembly", "cognitive_load",
    ]


def test_reduced_path_without_llm(make_context):
    result = asyncio.run(run_document_workflow(make_context(), TRANSCRIPT))

    assert result.completed
    assert result.errors == []
    assert result.executed == [
        "check_services", "transcription", "document_generation", "assembly", "cognitive_load",
    ]
    assert result["analysis"] is None
    assert result["diagrams"] == []
    assert [s.title for s in result["document_sections"]] == ["Overview", "Full Transcript"]
    assert result["warnings"] == [
        "LLM unavailable: analysis and generated sections were skipped",
        "Document generation used fallback: no analysis available",
    ]
    assert "# Overview" in result["final_document"]
    assert result["session_id"].startswith("doc_")


def test_disabled_diagrams_are_skipped_silently(make_context):
    context = full_context(make_context)
    result = asyncio.run(run_document_workflow(context, TRANSCRIPT, config={"generateDiagrams": False}))

    assert result["diagrams"] == []
    assert result["warnings"] == []


def test_llm_failures_fall_back_stage_by_stage(make_context):
    llm = FailingLLM(api_key="configured")
    result = asyncio.run(run_document_workflow(make_context(llm=llm, diagrams=DiagramService(llm)), TRANSCRIPT))

    assert result.errors == []
    assert result["warnings"] == ["Analysis used fallback mode: quota exceeded"]
    assert result["analysis"].suggested_sections == ["Introduction", "Main Content", "Conclusion"]
    assert [d.description for d in result["diagrams"]] == [
        "Basic flowchart diagram", "Basic sequence diagram", "Basic state diagram",
    ]
    assert result["final_document"]


def test_empty_transcript_still_produces_a_document(make_context):
    result = asyncio.run(run_document_workflow(make_context(), "   "))

    assert "Transcript is empty" in result["warnings"]
    assert result["segments"] == []
    assert result["final_document"]
    assert result.errors == []


def test_invalid_config_is_rejected(make_context):
    from aurix.engine import ValidationError

    with pytest.raises(ValidationError, match="document config"):
        asyncio.run(run_document_workflow(make_context(), TRANSCRIPT, config={"targetAudience": "toddlers"}))


def test_saved_document_is_announced(make_context, tmp_path):
    context = make_context()

    async def scenario():
        await context.start()
        result = await run_document_workflow(context, TRANSCRIPT, session_id="doc_42")
        path = await handle_document_result(context, result)
        await asyncio.sleep(0)
        return result, path, context.emitter.drain()

    result, path, events = asyncio.run(scenario())

    assert path.parent == tmp_path / "documents"
    assert path.name.startswith("doc_42_")
    assert path.read_text(encoding="utf-8") == result["final_document"]
    assert [event.type for event in events] == [EventType.DOCUMENT_SAVED]
    assert events[0].payload["cognitiveLoadIndex"] == result["cognitive_load_index"]


class TestAssembly:
    def test_failure_falls_back_and_records_error(self):
        node = AssemblyNode(today=lambda: "2025-03-12")
        patch = asyncio.run(node.run({"transcript": "Hello there.", "warnings": []}))

        assert patch["final_document"].startswith("# Transcribed Document\n\n*Generated on 2025-03-12*")
        assert "## Transcript" in patch["final_document"]
        assert patch["errors"] == ["assembly: Assembly failed: No document sections available for assembly"]
        assert patch["stage_timings"][0].stage == "assembly"

    def test_short_documents_have_no_table_of_contents(self):
        node = AssemblyNode(today=lambda: "2025-03-12")
        document = node.assemble({
            "session_id": "doc_1",
            "document_sections": [
                DocumentSection(title="Second", content="b", level=2, order=2),
                DocumentSection(title="First", content="a", level=1, order=0),
            ],
        })
        assert "Table of Contents" not in document
        assert document.index("# First") < document.index("## Second")
        assert "date: 2025-03-12" in document


class TestAnalysisParsing:
    def test_json_reply(self):
        analysis = parse_analysis(f"Here you go:\n{ANALYSIS}")
        assert analysis.topics == ["caching", "latency"]
        assert analysis.content_type == "explanation"

    def test_loose_reply(self):
        reply = "Topics:\n- caching\n- eviction\n\nThis is an advanced tutorial.\n\nKey Points:\n- LRU wins"
        analysis = parse_analysis(reply)
        assert analysis.topics == ["caching", "eviction"]
        assert analysis.complexity == "high"
        assert analysis.content_type == "tutorial"
        assert analysis.key_points == ["LRU wins"]

    def test_fallback_analysis(self):
        analysis = fallback_analysis("Caching caching caching helps. Latency matters. More words here. Final point.")
        assert analysis.topics[0] == "caching"
        assert analysis.key_points == ["Caching caching caching helps.", "Final point."]


def test_transcript_cleanup():
    cleaned = clean_transcript("  hello   world.How are you ?  Fine  ")
    assert cleaned == "hello world. How are you? Fine"
    assert split_sentences(cleaned) == ["hello world.", "How are you?", "Fine"]


def test_diagram_helpers():
    analysis = ContentAnalysis(topics=["a", "b", "c", "d"])
    assert [o.type for o in detect_opportunities("nothing to draw here", analysis)] == ["mindmap"]
    assert [o.type for o in detect_opportunities(TRANSCRIPT, None)] == ["flowchart", "sequence", "state"]
    assert extract_mermaid("```mermaid\ngraph LR\n  A-->B\n```") == "graph LR\n  A-->B"
    assert extract_mermaid("Sure!\nflowchart TD\n  A-->B\n\nThanks") == "flowchart TD\nA-->B"
    assert extract_mermaid("no diagram") is None


def test_theta_is_bounded_and_tracks_complexity():
    metrics = cognitive_metrics("A short plain sentence. Another one here.")
    low = theta_score(metrics, ContentAnalysis(complexity="low"))
    high = theta_score(metrics, ContentAnalysis(complexity="high"))
    assert 0 <= low < high <= 100
    assert high - low == 20
