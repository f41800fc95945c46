from __future__ import annotations

from rapidfuzz import fuzz

from linkgroups.models import Link, SearchResult, Tag
from linkgroups.services.ownership import owned_groups

SEARCH_TYPES = ("Groups", "Tags", "Links")


def _safe(value: str | None) -> str:
    return (value or "").strip()


def score_record(record: SearchResult, query: str) -> tuple[float, list[str]]:
    q = query.strip().lower()
    title_l = _safe(record.title).lower()
    url_l = _safe(record.url).lower() if record.type == "Links" else ""

    score = 0.0
    reasons: list[str] = []

    if q == title_l:
        score += 150
        reasons.append("exact_title")
    elif title_l.startswith(q):
        score += 120
        reasons.append("title_prefix")
    elif q in title_l:
        score += 100
        reasons.append("title_contains")

    if url_l and q in url_l:
        score += 45
        reasons.append("url_contains")

    fuzzy_title = fuzz.partial_ratio(q, title_l) if title_l else 0
    if fuzzy_title >= 72:
        score += fuzzy_title * 0.30
        reasons.append("title_fuzzy")

    return score, reasons


def search_records(records, query: str, limit: int = 50):
    if not query or not query.strip():
        return []

    ranked = []
    for record in records:
        score, reasons = score_record(record, query)
        if reasons and score > 0:
            ranked.append({"record": record, "score": round(score, 2), "reasons": reasons})

    ranked.sort(key=lambda item: item["score"], reverse=True)
    return ranked[:limit]


def search_owner(owner_id: int, query: str, limit: int = 50) -> dict[str, list[dict]]:
    records = [group.as_search_result() for group in owned_groups(owner_id)]
    records += [tag.as_search_result() for tag in Tag.query.filter_by(user_id=owner_id)]
    records += [
        link.as_search_result() for link in Link.query.filter_by(user_id=owner_id)
    ]

    buckets: dict[str, list[dict]] = {name: [] for name in SEARCH_TYPES}
    for item in search_records(records, query, limit=limit):
        buckets[item["record"].type].append(
            {
                **item["record"].as_dict(),
                "score": item["score"],
                "match_reasons": item["reasons"],
            }
        )
    return buckets
