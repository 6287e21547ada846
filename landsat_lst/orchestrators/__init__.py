"""Orchestration of a retrieval run: join, per-scene state machine, summary."""
