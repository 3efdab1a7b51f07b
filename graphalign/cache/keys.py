"""
Content keys for graphs and alignment runs.
"""
import hashlib
import json
from typing import Any, Dict


def generate_cache_key(data: Dict[str, Any]) -> str:
    """
    Generate a deterministic key from data.

    Args:
        data: Dictionary of parameters

    Returns:
        Hex string hash
    """
    # Sort keys for deterministic serialization
    serialized = json.dumps(data, sort_keys=True, separators=(',', ':'), default=str)

    hash_obj = hashlib.sha256(serialized.encode('utf-8'))

    return hash_obj.hexdigest()


def graph_key(graph) -> str:
    """
    Fingerprint a graph by its vertex and edge sets.

    Independent of insertion order and of edge orientation.
    """
    vertices = sorted(str(v) for v in graph.vertices())
    edges = sorted(sorted((str(u), str(v))) for u, v in graph.edges())
    return generate_cache_key({
        'type': 'graph',
        'vertices': vertices,
        'edges': edges
    })


def run_key(graph1_key: str, graph2_key: str, parameters: Dict[str, Any], seed: int) -> str:
    """Generate key identifying an alignment run (inputs + parameters + seed)."""
    return generate_cache_key({
        'type': 'run',
        'graph1': graph1_key,
        'graph2': graph2_key,
        'parameters': parameters,
        'seed': seed
    })
