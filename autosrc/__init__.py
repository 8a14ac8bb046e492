"""autosrc — manifest-driven source generation with an LLM in the loop."""

__version__ = "0.1.0"
