import re
from typing import Any, Dict, List

from aurix.workflows.document.nodes.base import DocumentNode
from aurix.workflows.document.schemas import TranscriptSegment

SENTENCE = re.compile(r"[^.!?]+[.!?]+")
SEGMENT = re.compile(r"[^.!?]+(?:[.!?]+|$)")  # a sentence, or the unterminated tail


def clean_transcript(text: str) -> str:
    text = re.sub(r"\s+", " ", text.strip())
    text = re.sub(r"(\w)([.!?])\s*(\w)", r"\1\2 \3", text)  # space after punctuation
    return re.sub(r"\s+([.!?,])", r"\1", text)              # no space before it


def split_sentences(text: str) -> List[str]:
    return [sentence.strip() for sentence in SEGMENT.findall(text) if sentence.strip()]


class TranscriptionNode(DocumentNode):
    """Normalizes the raw transcript and splits it into sentence segments."""

    name = "transcription"

    async def invoke(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = clean_transcript(state.get("transcript") or "")
        if not cleaned:
            return {"transcript": "", "segments": [], "warnings": ["Transcript is empty"]}

        segments = [
            TranscriptSegment(text=sentence, index=index)
            for index, sentence in enumerate(split_sentences(cleaned))
        ]
        return {"transcript": cleaned, "segments": segments}
