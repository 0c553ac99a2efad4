"""
Prompt text for the document workflow.
"""

from typing import List

ANALYSIS_SYSTEM_PROMPT = """You analyze spoken transcripts for a documentation assistant.

RESPONSE FORMAT:
You MUST respond with valid JSON only, no markdown, no extra text:
{"topics": ["..."], "complexity": "low|medium|high", "contentType": "explanation|tutorial|discussion|brainstorming|other", "keyPoints": ["..."], "suggestedSections": ["..."]}
"""

WRITER_SYSTEM_PROMPT = """You write clear, structured Markdown documentation from transcripts.
Never invent facts that are not supported by the context you are given."""

DIAGRAM_EXAMPLES = {
    "flowchart": """flowchart TD
    A[Start] --> B{Decision}
    B -->|Yes| C[Action 1]
    B -->|No| D[Action 2]
    C --> E[End]
    D --> E""",
    "sequence": """sequenceDiagram
    participant A as User
    participant B as System
    A->>B: Request
    B-->>A: Response""",
    "state": """stateDiagram-v2
    [*] --> State1
    State1 --> State2
    State2 --> [*]""",
    "mindmap": """mindmap
  root((Main Topic))
    Topic1
      Subtopic1
      Subtopic2
    Topic2
      Subtopic3""",
    "class": """classDiagram
    class Class1 {
      +attribute1
      +method1()
    }""",
    "er": """erDiagram
    ENTITY1 ||--o{ ENTITY2 : relationship""",
}


def analysis_prompt(transcript: str, audience: str) -> str:
    return f"""Analyze the following transcript and provide a structured analysis.

Target Audience: {audience}

Transcript:
{transcript}

Focus on:
1. Identifying the main topics discussed
2. Assessing the complexity level for the target audience
3. Determining the type of content
4. Extracting 3-5 key points
5. Suggesting logical sections for a structured document"""


def introduction_prompt(topics: List[str], style: str, audience: str, content_type: str) -> str:
    return f"""Generate an introduction for a {style} document about the following topics: {', '.join(topics)}.

Target audience: {audience}
Content type: {content_type}

The introduction should:
1. Briefly introduce the main topics
2. Set expectations for what will be covered
3. Be engaging and appropriate for the target audience
4. Be concise (2-3 paragraphs maximum)

Write in Markdown format."""


def section_prompt(title: str, style: str, audience: str, max_words: int, context: str, key_points: List[str]) -> str:
    points = "\n".join(key_points)
    return f"""Generate content for a section titled "{title}" in a {style} document.

Target audience: {audience}
Maximum length: {max_words} words

Context from the transcript:
{context}

Key points to potentially cover:
{points}

Write clear, structured content in Markdown format. Include:
- Relevant explanations
- Examples if appropriate
- Bullet points or numbered lists where helpful
- Code blocks if technical content is discussed"""


def conclusion_prompt(topics: List[str], key_points: List[str], style: str, audience: str) -> str:
    points = "\n".join(key_points)
    return f"""Generate a conclusion for a {style} document about {', '.join(topics)}.

Key points covered:
{points}

The conclusion should:
1. Summarize the main takeaways
2. Provide actionable next steps if appropriate
3. Be concise (1-2 paragraphs)
4. Leave the reader with clear understanding

Target audience: {audience}

Write in Markdown format."""


def diagram_prompt(diagram_type: str, context: str, keywords: List[str]) -> str:
    return f"""Generate a Mermaid {diagram_type} diagram based on the following context:

Context: {context}
Keywords: {', '.join(keywords)}

Example {diagram_type} diagram syntax:
```mermaid
{DIAGRAM_EXAMPLES[diagram_type]}
```

Generate a complete, valid Mermaid diagram that accurately represents the content.
The diagram should be:
1. Syntactically correct Mermaid code
2. Meaningful and related to the context
3. Not overly complex (5-10 nodes/elements maximum)
4. Well-labeled with clear, concise text

Return ONLY the Mermaid code block, nothing else."""
