"""SchemaScout: incremental schema discovery for SPARQL endpoints."""

__version__ = "0.1.0"
