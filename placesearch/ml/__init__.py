"""
ML Module
Embeddings, index adapters, ranking and the hybrid search pipeline.
"""
