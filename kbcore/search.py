"""BM25 ranking of records against a free-text query."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from kbcore.model import ExpertiseRecord


@dataclass
class Bm25Params:
    """BM25 tuning: ``k1`` saturates term frequency, ``b`` normalises length."""

    k1: float = 1.5
    b: float = 0.75


@dataclass
class Bm25Result:
    record: ExpertiseRecord
    score: float
    matched_fields: list[str] = field(default_factory=list)


def tokenize(text: str) -> list[str]:
    """Lowercase, turn punctuation (except ``-`` and ``_``) into spaces, split."""
    cleaned = "".join(
        c if c.isalnum() or c in "-_" or c.isspace() else " " for c in text.lower()
    )
    return cleaned.split()


def _field_texts(record: ExpertiseRecord) -> dict[str, str]:
    texts: dict[str, str] = {}

    def add(name: str, value: str) -> None:
        if value.strip():
            texts[name] = value

    for name in record._text_fields:
        add(name, getattr(record, name))
    if record.files is not None:
        add("files", " ".join(record.files))
    if record.tags is not None:
        add("tags", " ".join(record.tags))
    return texts


def _idf(corpus: list[list[str]]) -> dict[str, float]:
    doc_count = len(corpus)
    doc_freq: Counter[str] = Counter()
    for tokens in corpus:
        doc_freq.update(set(tokens))
    return {
        term: math.log((doc_count - freq + 0.5) / (freq + 0.5) + 1.0)
        for term, freq in doc_freq.items()
    }


def _score(
    query_tokens: list[str],
    doc_tokens: list[str],
    avg_doc_length: float,
    idf: dict[str, float],
    params: Bm25Params,
) -> float:
    tf = Counter(doc_tokens)
    length_ratio = len(doc_tokens) / avg_doc_length
    score = 0.0
    for term in query_tokens:
        freq = tf.get(term, 0)
        if freq == 0:
            continue
        numerator = freq * (params.k1 + 1.0)
        denominator = freq + params.k1 * (1.0 - params.b + params.b * length_ratio)
        score += idf.get(term, 0.0) * (numerator / denominator)
    return score


def search_bm25(
    records: Sequence[ExpertiseRecord], query: str, params: Bm25Params | None = None
) -> list[Bm25Result]:
    """Score every record against ``query``; return positive hits, best first."""
    params = params or Bm25Params()
    if not records or not query.strip():
        return []
    query_tokens = tokenize(query)
    if not query_tokens:
        return []

    fields = [_field_texts(r) for r in records]
    corpus = [tokenize(" ".join(f.values())) for f in fields]
    avg_doc_length = sum(len(tokens) for tokens in corpus) / len(corpus)
    if avg_doc_length == 0:
        return []
    idf = _idf(corpus)
    query_set = set(query_tokens)

    results = []
    for record, texts, tokens in zip(records, fields, corpus):
        score = _score(query_tokens, tokens, avg_doc_length, idf, params)
        if score > 0.0:
            matched = [
                name for name, text in texts.items() if query_set.intersection(tokenize(text))
            ]
            results.append(Bm25Result(record=record, score=score, matched_fields=matched))

    results.sort(key=lambda r: r.score, reverse=True)
    return results


def search_records(records: Sequence[ExpertiseRecord], query: str) -> list[ExpertiseRecord]:
    """Records matching ``query`` with default parameters, most relevant first."""
    return [result.record for result in search_bm25(records, query, Bm25Params())]