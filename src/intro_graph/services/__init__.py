"""Service layer for IntroGraph."""

from intro_graph.services.graph_service import GraphService

__all__ = ["GraphService"]
