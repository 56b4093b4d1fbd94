"""Nexus Ops: simulation and operation orchestration for a server dashboard."""

__version__ = "0.1.0"
