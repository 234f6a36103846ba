"""
Document Ingestion Module

Loaders for bringing local documents into the workspace file registry.

Supported formats:
- Markdown files (.md, .markdown)
- Plain text files (.txt)
"""

from .markdown_ingest import read_document, ingest_paths, ingest_directory
