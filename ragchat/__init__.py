# ragchat/__init__.py
"""
Ephemeral RAG chat sessions on Gemini File Search.

This package contains the session core (store lifecycle, document
ingestion, grounded querying, example questions), its configuration,
exceptions and utilities.
"""
