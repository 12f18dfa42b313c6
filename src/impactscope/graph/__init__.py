"""Project dependency graph: build, cache and traverse."""

from impactscope.graph.builder import DependencyGraph, GraphBuilder, resolve_specifier
from impactscope.graph.cache import GraphCache
from impactscope.graph.query import resolve_downstream

__all__ = [
    "DependencyGraph",
    "GraphBuilder",
    "GraphCache",
    "resolve_downstream",
    "resolve_specifier",
]
