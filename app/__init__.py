"""Signage ad manager: player feed resolution and campaign back office."""

__all__: list[str] = []
