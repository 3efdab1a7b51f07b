"""
HTML report generation for alignment results.
"""

from pathlib import Path
from typing import Dict, List, Optional
import pandas as pd
import matplotlib

matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt
import logging

logger = logging.getLogger(__name__)


class ReportGenerator:
    """Generate HTML report for alignment results."""

    def __init__(self, output_dir: Path):
        """
        Initialize report generator.

        Args:
            output_dir: Directory to save report
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate(
        self,
        fitness_history: List[float],
        metadata: Dict,
        generation_stats: Optional[List[dict]] = None,
        mapping: Optional[Dict] = None,
        alignment_plot: Optional[str] = None,
    ) -> Path:
        """
        Generate HTML report.

        Args:
            fitness_history: Global best fitness per generation
            metadata: Run metadata
            generation_stats: Optional list of per-generation statistics dicts
            mapping: Optional best mapping to tabulate
            alignment_plot: Optional path (relative to the run dir) of the alignment plot

        Returns:
            Path to report.html
        """
        logger.info("Generating alignment report")

        target = metadata.get("results", {}).get("target_fitness")
        fitness_plot = self._create_fitness_plot(fitness_history, generation_stats, target)

        extra_plots = []
        if alignment_plot:
            extra_plots.append(("Conserved Edges", alignment_plot))
        if generation_stats:
            diversity_plot = self._create_diversity_plot(generation_stats)
            if diversity_plot:
                extra_plots.append(("Population Diversity", diversity_plot))

            mutation_plot = self._create_mutation_plot(generation_stats)
            if mutation_plot:
                extra_plots.append(("Adaptive Mutation Rate", mutation_plot))

        mapping_table = self._mapping_table(mapping or {}, top_n=25)

        html = self._build_html(fitness_plot, mapping_table, metadata, extra_plots)

        report_file = self.output_dir / "report.html"
        with open(report_file, "w", encoding="utf-8") as f:
            f.write(html)

        logger.info(f"Report generated: {report_file}")

        return report_file

    def _plot_path(self, name: str) -> Path:
        plot_dir = self.output_dir / "plots"
        plot_dir.mkdir(exist_ok=True)
        return plot_dir / name

    def _create_fitness_plot(
        self,
        fitness_history: List[float],
        generation_stats: Optional[List[dict]] = None,
        target_fitness: Optional[float] = None,
    ) -> str:
        """Create fitness convergence plot with optional mean±stddev band."""
        fig, ax = plt.subplots(figsize=(8, 4))

        generations = list(range(1, len(fitness_history) + 1))

        ax.plot(
            generations,
            fitness_history,
            linewidth=2,
            color="#2563eb",
            label="Global Best",
            zorder=3,
        )

        if generation_stats and len(generation_stats) == len(fitness_history):
            current_best = [s["best_fitness"] for s in generation_stats]
            mean_fit = [s["mean_fitness"] for s in generation_stats]
            std_fit = [s["std_fitness"] for s in generation_stats]

            ax.plot(
                generations,
                current_best,
                linewidth=1,
                color="#059669",
                alpha=0.8,
                label="Generation Best",
                zorder=2,
            )
            ax.plot(
                generations,
                mean_fit,
                linewidth=1.5,
                linestyle="--",
                color="#f59e0b",
                label="Mean Fitness",
                zorder=2,
            )

            lower = [m - s for m, s in zip(mean_fit, std_fit)]
            upper = [m + s for m, s in zip(mean_fit, std_fit)]
            ax.fill_between(
                generations, lower, upper, alpha=0.15, color="#f59e0b", label="±1 Std Dev"
            )

        if target_fitness is not None:
            ax.axhline(
                y=target_fitness, color="#dc2626", linestyle=":", linewidth=1.5, label="Target"
            )

        ax.set_xlabel("Generation")
        ax.set_ylabel("Conserved Edges")
        ax.set_title("Alignment Convergence")
        ax.legend(loc="lower right", fontsize=9)
        ax.grid(True, alpha=0.3)

        fig.savefig(self._plot_path("fitness_plot.png"), dpi=100, bbox_inches="tight")
        plt.close(fig)

        return "plots/fitness_plot.png"

    def _create_diversity_plot(self, generation_stats: List[dict]) -> Optional[str]:
        """Create plot showing genotypic and phenotypic diversity over generations."""
        generations = [s["generation"] for s in generation_stats]

        has_genotypic = any(s.get("genotypic_diversity") is not None for s in generation_stats)
        has_phenotypic = any(s.get("phenotypic_diversity") is not None for s in generation_stats)

        if not has_genotypic and not has_phenotypic:
            return None

        fig, ax1 = plt.subplots(figsize=(8, 4))

        if has_genotypic:
            gen_div = [s.get("genotypic_diversity", 0) or 0 for s in generation_stats]
            ax1.plot(
                generations,
                gen_div,
                marker="o",
                markersize=3,
                linewidth=2,
                color="#2563eb",
                label="Genotypic Diversity",
            )

        ax1.set_xlabel("Generation")
        ax1.set_ylabel("Mapping Distance (fraction)", color="#2563eb")
        ax1.tick_params(axis="y", labelcolor="#2563eb")
        ax1.grid(True, alpha=0.3)

        if has_phenotypic:
            ax2 = ax1.twinx()
            phen_div = [s.get("phenotypic_diversity", 0) or 0 for s in generation_stats]
            ax2.plot(
                generations,
                phen_div,
                marker="s",
                markersize=3,
                linewidth=2,
                color="#dc2626",
                label="Phenotypic Diversity (σ fitness)",
            )
            ax2.set_ylabel("Phenotypic Diversity (σ fitness)", color="#dc2626")
            ax2.tick_params(axis="y", labelcolor="#dc2626")

        catastrophe_gens = [s["generation"] for s in generation_stats if s.get("catastrophe")]
        for i, cg in enumerate(catastrophe_gens):
            ax1.axvline(
                x=cg,
                color="#f59e0b",
                alpha=0.5,
                linestyle="--",
                label="Catastrophe" if i == 0 else None,
            )

        # Combined legend
        lines1, labels1 = ax1.get_legend_handles_labels()
        if has_phenotypic:
            lines2, labels2 = ax2.get_legend_handles_labels()
            ax1.legend(lines1 + lines2, labels1 + labels2, loc="upper right", fontsize=8)
        else:
            ax1.legend(loc="upper right", fontsize=8)

        ax1.set_title("Population Diversity Over Generations")
        fig.tight_layout()

        fig.savefig(self._plot_path("diversity_plot.png"), dpi=100, bbox_inches="tight")
        plt.close(fig)

        return "plots/diversity_plot.png"

    def _create_mutation_plot(self, generation_stats: List[dict]) -> Optional[str]:
        """Create plot of the adaptive mutation rate and stagnation counter."""
        if not any(s.get("mutation_rate") is not None for s in generation_stats):
            return None

        generations = [s["generation"] for s in generation_stats]
        rates = [s.get("mutation_rate", 0) or 0 for s in generation_stats]
        stagnant = [s.get("stagnant_generations", 0) or 0 for s in generation_stats]

        fig, ax1 = plt.subplots(figsize=(8, 4))
        ax1.plot(generations, rates, linewidth=2, color="#8b5cf6", label="Mutation Rate")
        ax1.set_xlabel("Generation")
        ax1.set_ylabel("Mutation Rate", color="#8b5cf6")
        ax1.set_ylim(0, 1.05)
        ax1.tick_params(axis="y", labelcolor="#8b5cf6")
        ax1.grid(True, alpha=0.3)

        ax2 = ax1.twinx()
        ax2.plot(
            generations,
            stagnant,
            linestyle="--",
            linewidth=1.5,
            color="#6b7280",
            alpha=0.7,
            label="Stagnant Generations",
        )
        ax2.set_ylabel("Stagnant Generations", color="#6b7280")

        lines1, labels1 = ax1.get_legend_handles_labels()
        lines2, labels2 = ax2.get_legend_handles_labels()
        ax1.legend(lines1 + lines2, labels1 + labels2, loc="upper left", fontsize=8)
        ax1.set_title("Adaptive Mutation Over Generations")
        fig.tight_layout()

        fig.savefig(self._plot_path("mutation_plot.png"), dpi=100, bbox_inches="tight")
        plt.close(fig)

        return "plots/mutation_plot.png"

    @staticmethod
    def _mapping_table(mapping: Dict, top_n: int = 25) -> pd.DataFrame:
        rows = [{"source": str(s), "target": str(t)} for s, t in list(mapping.items())[:top_n]]
        return pd.DataFrame(rows)

    def _build_html(
        self,
        fitness_plot: str,
        mapping_table: pd.DataFrame,
        metadata: Dict,
        extra_plots: Optional[List[tuple]] = None,
    ) -> str:
        """Build HTML report."""

        # Safely extract metrics
        results = metadata.get("results", {})
        fitness = results.get("fitness")
        target = results.get("target_fitness")
        fitness_str = f"{fitness:g}" if fitness is not None else "N/A"
        target_str = f"{target:g}" if target is not None else "N/A"
        generations = results.get("generations", "N/A")
        reached = "yes" if results.get("reached_target") else "no"

        metrics = results.get("metrics", {})
        ec = metrics.get("edge_correctness")
        ec_str = f"{ec * 100:.1f}%" if ec is not None else "N/A"
        s3 = metrics.get("s3")
        s3_str = f"{s3:.3f}" if s3 is not None else "N/A"

        run_info = metadata.get("run_info", {})
        timestamp = run_info.get("timestamp", "N/A")
        seed = run_info.get("seed", "N/A")

        graphs = metadata.get("graphs", {})
        g1 = graphs.get("graph1", {})
        g2 = graphs.get("graph2", {})

        ga_config = metadata.get("ga_config", {})
        config_rows = "".join(
            f"<tr><td>{key}</td><td>{value}</td></tr>" for key, value in ga_config.items()
        )

        quality = metadata.get("data_quality", {})
        quality_str = quality.get("summary", "N/A")

        extra_plots_html = ""
        if extra_plots:
            for title, plot_path in extra_plots:
                extra_plots_html += f"""
            <div class="plot">
                <h3>{title}</h3>
                <img src="{plot_path}" alt="{title}">
            </div>"""

        html = f"""
<!DOCTYPE html>
<html>
<head>
    <title>graphalign Alignment Report</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
            max-width: 1200px;
            margin: 40px auto;
            padding: 20px;
            background-color: #f8f9fa;
        }}
        .header, .section {{
            background-color: white;
            padding: 20px;
            border-radius: 8px;
            margin-bottom: 20px;
            box-shadow: 0 1px 3px rgba(0,0,0,0.1);
        }}
        h1 {{ color: #2563eb; margin: 0; }}
        h2 {{ color: #374151; margin-top: 0; }}
        table {{
            width: 100%;
            border-collapse: collapse;
            margin-top: 10px;
        }}
        th, td {{
            padding: 10px;
            text-align: left;
            border-bottom: 1px solid #e5e7eb;
        }}
        th {{ background-color: #f3f4f6; font-weight: 600; }}
        .metric {{ font-size: 1.5em; color: #2563eb; font-weight: bold; }}
        img {{ max-width: 100%; height: auto; }}
        .plots {{ display: flex; gap: 20px; flex-wrap: wrap; }}
        .plot {{ flex: 1; min-width: 400px; }}
        .metrics {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));  gap: 15px; }}
    </style>
</head>
<body>
    <div class="header">
        <h1>graphalign Alignment Report</h1>
        <p>Generated on {timestamp}</p>
    </div>

    <div class="section">
        <h2>Results Summary</h2>
        <div class="metrics">
            <p>Conserved Edges: <span class="metric">{fitness_str} / {target_str}</span></p>
            <p>Edge Correctness: <span class="metric">{ec_str}</span></p>
            <p>S3: <span class="metric">{s3_str}</span></p>
            <p>Generations: <span class="metric">{generations}</span></p>
            <p>Target Reached: <span class="metric">{reached}</span></p>
        </div>
        <p>Input quality: {quality_str}</p>
    </div>

    <div class="section">
        <h2>Run Configuration</h2>
        <table>
            <tr><th>Parameter</th><th>Value</th></tr>
            <tr><td>Source Graph</td><td>{g1.get("name", "N/A")} ({g1.get("vertices", "?")} vertices, {g1.get("edges", "?")} edges)</td></tr>
            <tr><td>Target Graph</td><td>{g2.get("name", "N/A")} ({g2.get("vertices", "?")} vertices, {g2.get("edges", "?")} edges)</td></tr>
            <tr><td>Seed</td><td>{seed}</td></tr>
            {config_rows}
        </table>
    </div>

    <div class="section">
        <h2>Convergence</h2>
        <div class="plots">
            <div class="plot">
                <h3>Fitness Convergence</h3>
                <img src="{fitness_plot}" alt="Fitness Plot">
            </div>
        </div>
    </div>

    <div class="section">
        <h2>GA Population Statistics</h2>
        <div class="plots">{extra_plots_html if extra_plots_html else '<p>No additional GA population plots available.</p>'}
        </div>
    </div>

    <div class="section">
        <h2>Best Mapping (first {len(mapping_table)} vertices)</h2>
        {mapping_table.to_html(index=False) if len(mapping_table) > 0 else '<p>No data available</p>'}
    </div>
</body>
</html>
"""
        return html
