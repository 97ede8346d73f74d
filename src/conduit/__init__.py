"""Conduit: a tool-using LLM agent over pluggable provider backends."""

__version__ = "0.1.0"
