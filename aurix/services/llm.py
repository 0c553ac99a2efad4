"""
LLM collaborators for the document workflow.

Both expose ``generate(...)`` and an ``is_available()`` probe; an unavailable
collaborator sends the document workflow down its reduced path.
"""

from typing import Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from aurix.logger import get_logger
from aurix.settings import settings

logger = get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are Aurix, an assistant that turns spoken transcripts into clear, "
    "well-structured Markdown documentation."
)


class LLMService:
    """
    Text generation over a LangChain chat model.

    Args:
        model: any chat model; when omitted a Gemini model is built from
            settings on first use
        api_key: Gemini API key used for the default model
    """

    def __init__(
        self,
        model: Optional[BaseChatModel] = None,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        self._model = model
        self.api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self.model_name = model_name or settings.LLM_MODEL
        self.temperature = settings.LLM_TEMPERATURE if temperature is None else temperature

    def is_available(self) -> bool:
        return self._model is not None or bool(self.api_key)

    @property
    def model(self) -> BaseChatModel:
        if self._model is None:
            if not self.api_key:
                raise RuntimeError("LLM not configured. Set GEMINI_API_KEY in .env")
            self._model = ChatGoogleGenerativeAI(
                model=self.model_name,
                temperature=self.temperature,
                google_api_key=self.api_key,
            )
            logger.info("LLM initialized: %s", self.model_name)
        return self._model

    async def generate(self, prompt: str, system: str = DEFAULT_SYSTEM_PROMPT) -> str:
        # Prompt text goes in as variables so literal braces survive templating
        template = ChatPromptTemplate.from_messages([
            ("system", "{system}"),
            ("user", "{prompt}"),
        ])
        chain = template | self.model | StrOutputParser()
        return await chain.ainvoke({"system": system, "prompt": prompt})


class DiagramService:
    """Mermaid diagram generation; disabled or without an LLM it is unavailable."""

    SYSTEM_PROMPT = "You write small, syntactically valid Mermaid diagrams. Reply with the Mermaid code only."

    def __init__(self, llm: Optional[LLMService], enabled: bool = True):
        self.llm = llm
        self.enabled = enabled

    def is_available(self) -> bool:
        return self.enabled and self.llm is not None and self.llm.is_available()

    async def generate(self, prompt: str) -> str:
        if not self.is_available():
            raise RuntimeError("Diagram generation is not available")
        return await self.llm.generate(prompt, system=self.SYSTEM_PROMPT)
