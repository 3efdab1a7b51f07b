"""
Command-line interface for graphalign.

    graphalign run GRAPH1 GRAPH2 [options]
    graphalign demo [--vertices N --edges M] [options]
"""
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from graphalign import VERSION_TEXT
from graphalign.config import get_config, get_run_defaults
from graphalign.errors import GraphAlignError
from graphalign.graphs.network import AlignmentGraph, random_graph

logger = logging.getLogger(__name__)


def _add_ga_arguments(parser: argparse.ArgumentParser, defaults: dict):
    ga = parser.add_argument_group("genetic algorithm")
    ga.add_argument("--seed", type=int, default=defaults["seed"], help="Random seed")
    ga.add_argument("--pop", type=int, default=defaults["population_size"], help="Population size")
    ga.add_argument("--gen", type=int, default=defaults["max_generations"], help="Maximum generations")
    ga.add_argument("--elitism", type=int, default=defaults["elitism_count"], help="Elite chromosomes kept per generation")
    ga.add_argument("--reset-rate", type=float, default=defaults["reset_rate"], help="Population fraction reset by a catastrophe")
    ga.add_argument(
        "--catastrophe-threshold",
        type=int,
        default=defaults["catastrophe_threshold"],
        help="Stagnant generations before a catastrophe",
    )
    ga.add_argument("--tournament", type=int, default=defaults["tournament_size"], help="Tournament size")
    ga.add_argument("--crossover", type=float, default=defaults["crossover_rate"], help="PMX crossover rate")
    ga.add_argument("--mutation", type=float, default=defaults["mutation_rate"], help="Base swap mutation rate")
    ga.add_argument(
        "--stagnant-rate",
        type=float,
        default=defaults["stagnant_rate"],
        help="Mutation rate growth per stagnant generation",
    )
    ga.add_argument(
        "--local-search-interval",
        type=int,
        default=defaults["local_search_interval"],
        help="Generations between local search passes",
    )
    ga.add_argument(
        "--target-rate",
        type=float,
        default=defaults["target_rate"],
        help="Stop once conserved edges reach this fraction of max(|E1|, |E2|)",
    )

    out = parser.add_argument_group("output")
    out.add_argument("--output", type=Path, default=None, help="Run output directory")
    out.add_argument("--name", default=None, help="Run identifier")
    out.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    out.add_argument("--progress", action="store_true", help="Show a progress bar")


def build_parser() -> argparse.ArgumentParser:
    defaults = get_run_defaults()

    parser = argparse.ArgumentParser(
        prog="graphalign",
        description="Align two undirected graphs with a genetic algorithm.",
    )
    parser.add_argument("--version", action="version", version=VERSION_TEXT)
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Align two edge-list files")
    run_parser.add_argument("graph1", type=Path, help="Source graph edge list")
    run_parser.add_argument("graph2", type=Path, help="Target graph edge list")
    _add_ga_arguments(run_parser, defaults)
    run_parser.set_defaults(func=cmd_run)

    demo_parser = subparsers.add_parser("demo", help="Align two random graphs")
    demo_parser.add_argument("--vertices", type=int, default=defaults["demo_vertices"], help="Vertices per graph")
    demo_parser.add_argument("--edges", type=int, default=defaults["demo_edges"], help="Edges per graph")
    _add_ga_arguments(demo_parser, defaults)
    demo_parser.set_defaults(func=cmd_demo)

    return parser


def _run_pipeline(args, graph1: AlignmentGraph, graph2: AlignmentGraph) -> int:
    import graphalign.pipeline as pipeline_module

    config = get_config()
    start = time.time()

    pipeline = pipeline_module.AlignmentPipeline(
        graph1=graph1,
        graph2=graph2,
        seed=args.seed,
        population_size=args.pop,
        elitism_count=args.elitism,
        max_generations=args.gen,
        reset_rate=args.reset_rate,
        catastrophe_threshold=args.catastrophe_threshold,
        tournament_size=args.tournament,
        crossover_rate=args.crossover,
        mutation_rate=args.mutation,
        stagnant_rate=args.stagnant_rate,
        local_search_interval=args.local_search_interval,
        target_rate=args.target_rate,
        output_dir=args.output,
        run_id=args.name,
        show_progress=args.progress or config.show_progress,
    )
    if args.quiet:
        logging.getLogger("graphalign").setLevel(logging.WARNING)

    metadata = pipeline.run()
    elapsed = time.time() - start

    results = metadata.get("results", {})
    print("Best mapping:")
    for source, target in metadata.get("mapping", {}).items():
        print(f"  {source} -> {target}")
    print(f"Fitness: {results.get('fitness', 0):g} / {results.get('target_fitness', 0):g}")
    print(f"Results: {pipeline.output_dir}")
    print(f"Elapsed time: {elapsed:.2f} seconds")
    return 0


def cmd_run(args) -> int:
    graph1 = AlignmentGraph.from_edge_list(args.graph1)
    graph2 = AlignmentGraph.from_edge_list(args.graph2)
    return _run_pipeline(args, graph1, graph2)


def cmd_demo(args) -> int:
    graph1 = random_graph(args.vertices, args.edges, seed=args.seed, name="random_1")
    graph2 = random_graph(args.vertices, args.edges, seed=args.seed + 1, name="random_2")
    return _run_pipeline(args, graph1, graph2)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except (GraphAlignError, ValueError, OSError) as e:
        logger.error(f"Alignment failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
