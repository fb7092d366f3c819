"""Weather and time assistant driven by a tool-calling language model."""

__version__ = "0.1.0"
