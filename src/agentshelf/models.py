"""Core AgentShelf data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass(frozen=True, slots=True)
class Chunk:
    """Indexed unit of documentation tied to one document section."""

    doc_path: str
    doc_title: str
    section_title: str
    content: str
    tokens: int


@dataclass(frozen=True, slots=True)
class PackageInfo:
    """Registry entry describing one installed documentation package."""

    name: str
    version: str
    path: Path
    section_count: int = 0
    description: str = ""

    @property
    def library(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(slots=True)
class RankedDocument:
    """Best-scoring chunk of one source document, with its raw score."""

    source: str
    title: str
    content: str
    tokens: int
    score: float


@dataclass(slots=True)
class DocSnippet:
    title: str
    content: str
    source: str


@dataclass(slots=True)
class SearchResult:
    """Ranked, budgeted snippets from a single library."""

    library: str
    version: str
    results: List[DocSnippet] = field(default_factory=list)
    tokens_used: int = 0


@dataclass(slots=True)
class SearchAllEntry:
    library: str
    title: str
    content: str
    source: str
    score: float


@dataclass(slots=True)
class SearchAllResult:
    """Snippets merged across libraries, ordered by normalized score."""

    results: List[SearchAllEntry] = field(default_factory=list)
    tokens_used: int = 0
