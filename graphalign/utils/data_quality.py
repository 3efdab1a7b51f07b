"""
Input quality assessment for graph pairs before alignment.
"""

from collections import Counter
from typing import Any, Dict, Optional


def _score_size_balance(size_ratio: float) -> int:
    if size_ratio >= 0.95:
        return 30
    if size_ratio >= 0.85:
        return 25
    if size_ratio >= 0.7:
        return 18
    if size_ratio >= 0.5:
        return 10
    if size_ratio > 0.0:
        return 4
    return 0


def _score_edge_balance(edge_ratio: float) -> int:
    if edge_ratio >= 0.9:
        return 25
    if edge_ratio >= 0.75:
        return 20
    if edge_ratio >= 0.5:
        return 14
    if edge_ratio >= 0.25:
        return 7
    if edge_ratio > 0.0:
        return 2
    return 0


def _score_density(mean_degree: float) -> int:
    # Sparse graphs give the search little structure to conserve.
    if mean_degree >= 3.0:
        return 20
    if mean_degree >= 2.0:
        return 16
    if mean_degree >= 1.0:
        return 10
    if mean_degree > 0.0:
        return 4
    return 0


def _score_isolated(isolated_share: Optional[float]) -> int:
    if isolated_share is None:
        return 0
    if isolated_share == 0.0:
        return 25
    if isolated_share <= 0.05:
        return 20
    if isolated_share <= 0.15:
        return 12
    if isolated_share <= 0.3:
        return 6
    return 0


def _label_from_score(score: int) -> str:
    if score >= 85:
        return "excellent"
    if score >= 70:
        return "good"
    if score >= 55:
        return "fair"
    if score >= 40:
        return "weak"
    return "poor"


def _recommendation(score: int, source_edges: int, target_edges: int) -> str:
    if source_edges == 0 or target_edges == 0:
        return "do_not_proceed"
    if score < 40:
        return "high_risk"
    if score < 55:
        return "caution"
    return "proceed"


def _ratio(a: int, b: int) -> float:
    largest = max(a, b)
    return float(min(a, b) / largest) if largest > 0 else 0.0


def _isolated_count(graph) -> int:
    degrees = Counter()
    for u, v in graph.edges():
        degrees[u] += 1
        degrees[v] += 1
    return sum(1 for v in graph.vertices() if degrees[v] == 0)


def assess_graph_pair(graph1, graph2) -> Dict[str, Any]:
    """
    Assess whether a graph pair is a sensible alignment input.

    Args:
        graph1: Source graph
        graph2: Target graph

    Returns:
        Dictionary with score/label/recommendation, metrics, and human-readable summary.
    """
    v1 = len(graph1.vertices())
    v2 = len(graph2.vertices())
    e1 = len(graph1.edges())
    e2 = len(graph2.edges())

    size_ratio = _ratio(v1, v2)
    edge_ratio = _ratio(e1, e2)
    mean_degree = float(2 * e1 / v1) if v1 > 0 else 0.0
    isolated = _isolated_count(graph1)
    isolated_share = float(isolated / v1) if v1 > 0 else None
    unmapped_source = max(0, v1 - v2)

    score_components = {
        "size_balance": _score_size_balance(size_ratio),
        "edge_balance": _score_edge_balance(edge_ratio),
        "density": _score_density(mean_degree),
        "isolated_vertices": _score_isolated(isolated_share),
    }
    score = int(sum(score_components.values()))
    label = _label_from_score(score)
    recommendation = _recommendation(score, e1, e2)

    warnings = []
    if e1 == 0:
        warnings.append("empty_source_graph")
    if e2 == 0:
        warnings.append("empty_target_graph")
    if size_ratio < 0.8:
        warnings.append("size_mismatch")
    if edge_ratio < 0.5:
        warnings.append("edge_count_mismatch")
    if isolated_share is not None and isolated_share > 0.1:
        warnings.append("isolated_vertices")
    if unmapped_source > 0:
        warnings.append("unmapped_source_vertices")

    summary = (
        f"{label.upper()} quality ({score}/100): "
        f"{v1} vertices / {e1} edges aligned onto {v2} vertices / {e2} edges "
        f"(size ratio {size_ratio:.2f}, edge ratio {edge_ratio:.2f})."
    )

    return {
        "score": score,
        "label": label,
        "recommendation": recommendation,
        "summary": summary,
        "warnings": warnings,
        "components": score_components,
        "metrics": {
            "source_vertices": v1,
            "source_edges": e1,
            "target_vertices": v2,
            "target_edges": e2,
            "size_ratio": size_ratio,
            "edge_ratio": edge_ratio,
            "mean_source_degree": mean_degree,
            "isolated_source_vertices": isolated,
            "isolated_share": isolated_share,
            "unmapped_source_vertices": unmapped_source,
        },
    }
