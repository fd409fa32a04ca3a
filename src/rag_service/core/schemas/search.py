"""Pydantic models of the Serper.dev search response.

Only the fields the retrieval pipeline reads are modelled; everything else
Serper returns (``knowledgeGraph``, ``peopleAlsoAsk``, credits, ...) is
ignored.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchParameters(BaseModel):
    """Echo of the query parameters Serper actually executed."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    q: str
    search_type: str = Field(default="search", alias="type")
    engine: str = "google"


class OrganicResult(BaseModel):
    """One organic (non-ad) search hit.

    Attributes:
        title: Result title as shown by Google.
        link: Target URL.
        snippet: Result snippet; Serper omits it for some hits.
        position: 1-based rank in the result list.
        date: Publication date string when Google shows one.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    link: str
    snippet: str = ""
    position: int = 0
    date: Optional[str] = None


class SearchResponse(BaseModel):
    """Top-level Serper.dev ``/search`` response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    search_parameters: SearchParameters = Field(alias="searchParameters")
    organic: List[OrganicResult] = Field(default_factory=list)

    @property
    def links(self) -> list[str]:
        """Organic result URLs in rank order."""
        return [result.link for result in self.organic]
