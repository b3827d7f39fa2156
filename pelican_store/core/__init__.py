"""Core building blocks: chunking, similarity, indexes and the store service."""
