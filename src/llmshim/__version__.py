"""Version information for llmshim."""

__version__ = "0.3.0"
