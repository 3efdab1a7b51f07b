"""
Main alignment pipeline orchestrator.
Ties together graphs, operators, the GA engine and result export.
"""
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from datetime import datetime
import logging
import time

from tqdm import tqdm

from graphalign.utils.logger import release_file_logging, setup_logging

from graphalign.config import get_config
from graphalign.graphs.network import AlignmentGraph
from graphalign.alignment.objective import EdgeOverlapObjective
from graphalign.alignment.crossover import PartiallyMappedCrossover
from graphalign.alignment.mutation import SwapMutation
from graphalign.alignment.local_search import LocalSearchImprovement
from graphalign.alignment.optimizer import AlignmentResult, GeneticAlgorithm
from graphalign.cache.keys import graph_key, run_key
from graphalign.export.exporter import AlignmentExporter
from graphalign.export.report import ReportGenerator
from graphalign.utils.data_quality import assess_graph_pair
from graphalign.utils.visualization import plot_alignment

logger = logging.getLogger(__name__)


class AlignmentPipeline:
    """Main alignment pipeline."""

    def __init__(
        self,
        graph1: AlignmentGraph,
        graph2: AlignmentGraph,
        seed: int,
        population_size: int = 50,
        elitism_count: int = 5,
        max_generations: int = 100,
        reset_rate: float = 0.5,
        catastrophe_threshold: int = 20,
        tournament_size: int = 3,
        crossover_rate: float = 0.85,
        mutation_rate: float = 0.15,
        stagnant_rate: float = 0.5,
        local_search_interval: int = 10,
        target_rate: float = 0.8,
        output_dir: Path = None,
        run_id: str = None,
        progress_callback: Optional[Callable[[int, str, str, str], None]] = None,
        show_progress: bool = False,
    ):
        """
        Initialize pipeline.

        Args:
            graph1: Source graph
            graph2: Target graph
            seed: Random seed
            population_size: GA population size
            elitism_count: Chromosomes kept unmodified per generation
            max_generations: GA generations
            reset_rate: Fraction of the population reset by a catastrophe
            catastrophe_threshold: Stagnant generations before a catastrophe
            tournament_size: Tournament size for parent selection
            crossover_rate: PMX probability per pair
            mutation_rate: Base swap-mutation rate
            stagnant_rate: Mutation rate growth per stagnant generation
            local_search_interval: Generations between local-search passes
            target_rate: Early-stopping fraction of max(|E1|, |E2|)
            output_dir: Output directory for results
            run_id: Optional custom identifier for the run
            progress_callback: Optional callable(stage, name, msg, level) for UI updates
            show_progress: Show a tqdm progress bar over generations
        """
        self.graph1 = graph1
        self.graph2 = graph2
        self.seed = seed
        self.population_size = population_size
        self.elitism_count = elitism_count
        self.max_generations = max_generations
        self.reset_rate = reset_rate
        self.catastrophe_threshold = catastrophe_threshold
        self.tournament_size = tournament_size
        self.crossover_rate = crossover_rate
        self.mutation_rate = mutation_rate
        self.stagnant_rate = stagnant_rate
        self.local_search_interval = local_search_interval
        self.target_rate = target_rate
        self.show_progress = show_progress
        self.run_id = run_id

        self.config = get_config()

        if output_dir is None:
            if run_id:
                run_name = f"run_{run_id}"
            else:
                timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                run_name = f"run_{timestamp}"
                self.run_id = timestamp

            output_dir = Path(self.config.runs_dir) / run_name
        elif self.run_id is None:
            self.run_id = Path(output_dir).name.replace("run_", "")

        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        # Create subdirectories
        (self.output_dir / "logs").mkdir(exist_ok=True)
        (self.output_dir / "data").mkdir(exist_ok=True)
        (self.output_dir / "plots").mkdir(exist_ok=True)

        self._setup_run_logging()

        self.progress_callback = progress_callback

        logger.info(f"Pipeline initialized: {graph1!r} -> {graph2!r}, seed={seed}, run_id={self.run_id}")

    def _report_progress(self, stage: int, name: str, msg: str, level: str = "info"):
        """Report progress via callback if available."""
        if self.progress_callback:
            try:
                self.progress_callback(stage, name, msg, level)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

        if level == "info":
            logger.info(f"[{stage}] {name}: {msg}")
        elif level == "error":
            logger.error(f"[{stage}] {name}: {msg}")
        elif level == "warning":
            logger.warning(f"[{stage}] {name}: {msg}")

    def _setup_run_logging(self):
        """Setup file logging for this specific run."""
        setup_logging(
            run_dir=self.output_dir / "logs",
            log_file="pipeline.log",
            level=self.config.log_level,
        )

    def ga_parameters(self) -> Dict[str, Any]:
        """GA parameters of this run, as recorded in metadata and run keys."""
        return {
            "population_size": self.population_size,
            "elitism_count": self.elitism_count,
            "max_generations": self.max_generations,
            "reset_rate": self.reset_rate,
            "catastrophe_threshold": self.catastrophe_threshold,
            "tournament_size": self.tournament_size,
            "crossover_rate": self.crossover_rate,
            "mutation_rate": self.mutation_rate,
            "stagnant_rate": self.stagnant_rate,
            "local_search_interval": self.local_search_interval,
            "target_rate": self.target_rate,
        }

    def run(self) -> Dict:
        """
        Execute the full alignment workflow.

        The run log file is closed when the workflow ends, successfully or not.

        Returns:
            Run metadata dictionary (also written to run_meta.json)
        """
        try:
            return self._run_stages()
        finally:
            release_file_logging(self.output_dir / "logs")

    def _run_stages(self) -> Dict:
        start_time = time.time()
        self._report_progress(0, "Initializing", "Starting alignment run")

        # Stage 1: input quality
        quality = assess_graph_pair(self.graph1, self.graph2)
        self._report_progress(1, "Input Quality", quality["summary"])
        if quality["recommendation"] in ("do_not_proceed", "high_risk"):
            self._report_progress(
                1,
                "Input Quality",
                f"Recommendation '{quality['recommendation']}', warnings: {', '.join(quality['warnings']) or 'none'}",
                level="warning",
            )

        # Stage 2: operators
        objective = EdgeOverlapObjective(self.graph1, self.graph2, target_rate=self.target_rate)
        ga = GeneticAlgorithm(
            fitness_provider=objective,
            crossover_operator=PartiallyMappedCrossover(
                tournament_size=self.tournament_size, crossover_rate=self.crossover_rate
            ),
            mutation_operator=SwapMutation(
                base_mutation_rate=self.mutation_rate, stagnant_rate=self.stagnant_rate
            ),
            improvement_operator=LocalSearchImprovement(interval=self.local_search_interval),
            seed=self.seed,
            population_size=self.population_size,
            elitism_count=self.elitism_count,
            max_generations=self.max_generations,
            reset_rate=self.reset_rate,
            catastrophe_threshold=self.catastrophe_threshold,
        )
        self._report_progress(
            2, "Setup", f"Target fitness {objective.target_fitness:g}, mapping {objective.mapping_size} vertices"
        )

        # Stage 3: optimization
        self._report_progress(3, "Aligning", f"Running GA for up to {self.max_generations} generations")
        result = self._optimize(ga)
        status = "target reached" if result.reached_target else "generation limit reached"
        self._report_progress(
            3,
            "Aligning",
            f"Best fitness {result.fitness:g}/{result.target_fitness:g} after {result.generations} generations ({status})",
        )

        # Stage 4: export
        metrics = objective.calculate_metrics(result.mapping)
        metadata = self._export_results(result, metrics, quality, time.time() - start_time)
        self._report_progress(4, "Complete", f"Results written to {self.output_dir}")

        return metadata

    def _optimize(self, ga: GeneticAlgorithm) -> AlignmentResult:
        """Run the GA with an optional progress bar."""
        bar = tqdm(
            total=self.max_generations,
            desc="Aligning",
            leave=False,
            disable=not self.show_progress,
        )

        def generation_callback(gen: int, _mapping, best_fitness: float, stats: Dict[str, Any]):
            bar.update(1)
            bar.set_postfix(best=f"{best_fitness:g}", stagnant=stats.get("stagnant_generations", 0))

        try:
            return ga.optimize(generation_callback=generation_callback)
        finally:
            bar.close()

    def _export_results(
        self,
        result: AlignmentResult,
        metrics: Dict[str, Any],
        quality: Dict[str, Any],
        elapsed_seconds: float,
    ) -> Dict:
        """Export mapping, statistics, plots and report with run metadata."""
        g1_key = graph_key(self.graph1)
        g2_key = graph_key(self.graph2)
        parameters = self.ga_parameters()

        metadata = {
            'run_info': {
                'timestamp': datetime.now().isoformat(),
                'run_id': self.run_id,
                'seed': self.seed,
                'run_key': run_key(g1_key, g2_key, parameters, self.seed),
                'elapsed_seconds': round(elapsed_seconds, 3),
            },
            'graphs': {
                'graph1': {
                    'name': self.graph1.name,
                    'vertices': self.graph1.num_vertices,
                    'edges': self.graph1.num_edges,
                    'key': g1_key,
                },
                'graph2': {
                    'name': self.graph2.name,
                    'vertices': self.graph2.num_vertices,
                    'edges': self.graph2.num_edges,
                    'key': g2_key,
                },
            },
            'ga_config': parameters,
            'data_quality': quality,
            'output_files': {
                'mapping_csv': 'data/mapping.csv',
                'generation_stats_csv': 'data/generation_stats.csv',
                'alignment_plot': 'plots/alignment.png',
                'report_html': 'report.html',
                'metadata_json': 'run_meta.json',
                'plots_dir': 'plots',
                'logs_dir': 'logs',
            },
        }

        exporter = AlignmentExporter(self.output_dir, self.graph1, self.graph2)
        exporter.export(result, metrics, metadata)

        alignment_plot = self.output_dir / "plots" / "alignment.png"
        plot_alignment(self.graph1, self.graph2, result.mapping, alignment_plot, seed=self.seed)

        metadata['results'] = {
            'fitness': result.fitness,
            'target_fitness': result.target_fitness,
            'reached_target': result.reached_target,
            'generations': result.generations,
            'catastrophes': result.catastrophes,
            'improvements': result.improvements,
            'evaluations': result.evaluations,
            'fitness_history': result.fitness_history,
            'metrics': metrics,
        }

        report_gen = ReportGenerator(self.output_dir)
        report_gen.generate(
            result.fitness_history,
            metadata,
            result.generation_stats,
            mapping=result.mapping,
            alignment_plot="plots/alignment.png" if alignment_plot.exists() else None,
        )

        metadata['mapping'] = dict(result.mapping)
        return metadata
