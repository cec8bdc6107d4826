"""Core modules: database client, value normalization, error taxonomy."""

from .neo4j_client import Neo4jClient
from .normalize import normalize_record, normalize_value

__all__ = ["Neo4jClient", "normalize_record", "normalize_value"]
