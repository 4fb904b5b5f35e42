"""
Statement Ingestion API

Thin FastAPI adapter over the ingestion pipeline.
"""
