from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

_AWS_DOCS_SEARCH_URL = "https://proxy.search.docs.aws.amazon.com/search"
_DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class DocResult:
    title: str
    url: str
    abstract: str


@runtime_checkable
class DocsSearchProvider(Protocol):
    @property
    def provider_name(self) -> str: ...

    async def search(self, query: str) -> list[DocResult]:
        """Return ranked results. Raises on errors (caller handles formatting)."""
        ...


class AwsDocsSearchProvider:
    def __init__(self, timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout_seconds = timeout_seconds

    @property
    def provider_name(self) -> str:
        return "AWS Documentation"

    async def search(self, query: str) -> list[DocResult]:
        body = {
            "textQuery": {"input": query},
            "contextAttributes": [{"key": "domain", "value": "docs.aws.amazon.com"}],
            "acceptSuggestionBody": "RawText",
            "locales": ["en_us"],
        }

        async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
            response = await client.post(_AWS_DOCS_SEARCH_URL, json=body)

        if response.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"received status {response.status_code} from AWS documentation search",
                request=response.request,
                response=response,
            )

        data = response.json()
        results: list[DocResult] = []
        for suggestion in data.get("suggestions") or []:
            excerpt = suggestion.get("textExcerptSuggestion") or {}
            metadata = excerpt.get("metadata") or {}
            abstract = metadata.get("seo_abstract") or metadata.get("abstract") or excerpt.get("summary") or ""
            results.append(
                DocResult(
                    title=excerpt.get("title", "(no title)"),
                    url=excerpt.get("link", ""),
                    abstract=abstract,
                )
            )
        return results
