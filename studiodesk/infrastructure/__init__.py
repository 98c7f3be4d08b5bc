"""Application-wide infrastructure: database engine and LLM client."""
