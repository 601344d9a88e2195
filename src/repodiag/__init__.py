"""repodiag - architecture diagrams from hosted repositories via LLMs."""

__version__ = "0.1.0"
