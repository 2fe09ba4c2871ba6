"""line-relay: LINE webhook receiver with keyword replies and Gemini generation."""

__version__ = "0.1.0"
