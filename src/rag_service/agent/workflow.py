"""Enhance -> retrieve -> generate, run over an explicit context object.

Each step reads what it needs from :class:`WorkflowContext` and writes its
own output back; a step that finds its input missing raises
:class:`~rag_service.core.exceptions.WorkflowError`.

Example::

    workflow = AgentWorkflow(scraper, client, get_settings())
    context = await workflow.run("settler violence in the west bank")
    print(context.answer)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

import httpx

from rag_service.agent.generator import generate_answer
from rag_service.agent.query_enhancer import enhance_query
from rag_service.agent.retriever import RetrievalResult, retrieve
from rag_service.core.exceptions import WorkflowError

if TYPE_CHECKING:
    from rag_service.config.settings import Settings
    from rag_service.scraper.browser_scraper import BrowserScraper

logger = logging.getLogger(__name__)


@dataclass
class WorkflowContext:
    """State shared by the workflow steps for one query.

    Attributes:
        query: The user's original question.
        enhanced_query: Search terms produced by the enhancer.
        search_results: Substantial page texts produced by the retriever.
        answer: Final answer produced by the generator.
        retrieval: Full retrieval details, kept for diagnostics.
    """

    query: str
    enhanced_query: Optional[str] = None
    search_results: List[str] = field(default_factory=list)
    answer: Optional[str] = None
    retrieval: Optional[RetrievalResult] = None


class AgentWorkflow:
    """Runs the three agent steps in order for one query at a time.

    Args:
        scraper: Shared browser scraper.
        client: Shared HTTP client for the search and LLM APIs.
        settings: Application settings.
    """

    def __init__(
        self,
        scraper: BrowserScraper,
        client: httpx.AsyncClient,
        settings: Settings,
    ) -> None:
        self.scraper = scraper
        self.client = client
        self.settings = settings

    async def run(self, query: str) -> WorkflowContext:
        """Run the workflow and return the filled-in context.

        Raises:
            WorkflowError: If a step's input is missing or a model returned
                nothing usable.
            RagServiceError: Any other failure raised by a step.
        """
        context = WorkflowContext(query=query)
        await self.enhance(context)
        await self.retrieve(context)
        await self.generate(context)
        if context.answer is None:
            raise WorkflowError("Failed to retrieve answer from context")
        return context

    async def enhance(self, context: WorkflowContext) -> None:
        context.enhanced_query = await enhance_query(self.client, context.query, self.settings)

    async def retrieve(self, context: WorkflowContext) -> None:
        enhanced_query = _require_enhanced_query(context)
        logger.info("workflow: retrieving with enhanced query %r", enhanced_query)
        retrieval = await retrieve(self.scraper, self.client, enhanced_query, self.settings)
        context.retrieval = retrieval
        context.search_results = retrieval.texts

    async def generate(self, context: WorkflowContext) -> None:
        _require_enhanced_query(context)
        context.answer = await generate_answer(
            self.client, context.query, context.search_results, self.settings
        )


def _require_enhanced_query(context: WorkflowContext) -> str:
    if not context.enhanced_query:
        raise WorkflowError("Missing enhanced query")
    return context.enhanced_query
