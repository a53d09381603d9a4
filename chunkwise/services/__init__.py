"""Business logic: chunking, conversion, vector-store orchestration and search."""
