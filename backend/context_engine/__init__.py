"""
Context Engine - chunked context storage and similarity search for
language-model consumers.
"""
__version__ = "0.1.0"
