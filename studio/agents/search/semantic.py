"""
Embedding-based ranking of candidate passages against a query.
"""
from typing import Any, Dict, List, Optional, Sequence

import numpy as np


def normalize_documents(documents: Optional[Sequence[Any]]) -> List[Dict[str, str]]:
    """Accept plain strings or {"text", "source"} objects; drop empty entries."""
    if not documents:
        return []

    normalized = []
    for idx, doc in enumerate(documents, 1):
        if isinstance(doc, str):
            text = doc.strip()
            source = f"Document {idx}"
        elif isinstance(doc, dict):
            text = str(doc.get("text") or doc.get("content") or "").strip()
            source = str(doc.get("source") or doc.get("title") or f"Document {idx}")
        else:
            continue
        if text:
            normalized.append({"text": text, "source": source})
    return normalized


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    if vec_a.shape != vec_b.shape:
        raise ValueError(
            f"Embedding dimensions differ: {vec_a.shape[0]} vs {vec_b.shape[0]}"
        )
    denom = np.linalg.norm(vec_a) * np.linalg.norm(vec_b)
    if denom == 0:
        return 0.0
    return float(np.dot(vec_a, vec_b) / denom)


def rank_by_similarity(
    query_embedding: Sequence[float],
    documents: List[Dict[str, str]],
    document_embeddings: List[Sequence[float]],
    threshold: float,
    max_results: int,
) -> List[Dict[str, Any]]:
    """Score, filter by threshold, sort best-first and cap the result count."""
    results = []
    for doc, embedding in zip(documents, document_embeddings):
        score = round(cosine_similarity(query_embedding, embedding), 4)
        if score >= threshold:
            results.append({**doc, "score": score})

    results.sort(key=lambda r: r["score"], reverse=True)
    return results[:max_results]
