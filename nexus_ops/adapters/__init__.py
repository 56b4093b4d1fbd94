"""Integration adapters.

Adapters connect the dashboard core to external systems (chat platform, LLMs).
"""
