"""End-to-end discovery and snippet pipelines."""

from charindex.pipeline.discovery_pipeline import DiscoveryPipeline, DiscoveryResult, DiscoveryStats
from charindex.pipeline.snippet_pipeline import SnippetPipeline, SnippetResult, SnippetStats, render_review

__all__ = [
    "DiscoveryPipeline",
    "DiscoveryResult",
    "DiscoveryStats",
    "SnippetPipeline",
    "SnippetResult",
    "SnippetStats",
    "render_review",
]
