"""Inbound (HTTP, CLI) and outbound (Qdrant, OpenAI) adapters."""
