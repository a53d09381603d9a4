"""Reranker implementations.

FastEmbedReranker is imported directly where needed so importing this
package does not pull in ONNX Runtime.
"""
