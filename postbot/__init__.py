"""postbot — tool server and chat dispatcher for Gemini and X."""
__version__ = "1.0.0"
