import networkx as nx

from graphalign.cache.keys import generate_cache_key, graph_key, run_key
from graphalign.graphs.network import AlignmentGraph


def test_generate_cache_key_ignores_dict_order():
    assert generate_cache_key({"a": 1, "b": 2}) == generate_cache_key({"b": 2, "a": 1})


def test_graph_key_ignores_insertion_order_and_orientation():
    g1 = nx.Graph()
    g1.add_edges_from([("a", "b"), ("b", "c")])
    g2 = nx.Graph()
    g2.add_edges_from([("c", "b"), ("b", "a")])

    assert graph_key(AlignmentGraph(g1)) == graph_key(AlignmentGraph(g2))


def test_graph_key_changes_with_edges():
    path = AlignmentGraph(nx.path_graph(3))
    triangle = AlignmentGraph(nx.complete_graph(3))
    assert graph_key(path) != graph_key(triangle)


def test_run_key_combines_inputs():
    k1 = graph_key(AlignmentGraph(nx.path_graph(3)))
    k2 = graph_key(AlignmentGraph(nx.cycle_graph(3)))
    params = {"population_size": 50, "max_generations": 100}

    base = run_key(k1, k2, params, seed=42)

    assert base == run_key(k1, k2, dict(params), seed=42)
    assert base != run_key(k1, k2, params, seed=43)
    assert base != run_key(k2, k1, params, seed=42)
    assert base != run_key(k1, k2, {**params, "population_size": 60}, seed=42)
