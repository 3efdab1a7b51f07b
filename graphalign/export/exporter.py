"""
Alignment result export.
"""
from pathlib import Path
from typing import Any, Dict, Optional
import json
from datetime import datetime
import logging

import numpy as np
import pandas as pd

from graphalign.alignment.objective import is_conserved_edge
from graphalign.alignment.optimizer import AlignmentResult

logger = logging.getLogger(__name__)


class AlignmentExporter:
    """Export an alignment result to a run folder."""

    def __init__(self, output_dir: Path, graph1, graph2):
        """
        Initialize exporter.

        Args:
            output_dir: Run directory to export into
            graph1: Source graph of the alignment
            graph2: Target graph of the alignment
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir = self.output_dir / "data"
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.graph1 = graph1
        self.graph2 = graph2

    def export(
        self,
        result: AlignmentResult,
        metrics: Optional[Dict[str, Any]],
        run_metadata: Dict
    ) -> Path:
        """
        Export mapping, generation statistics and metadata.

        Args:
            result: Outcome of the GA run
            metrics: Alignment metrics from the objective
            run_metadata: Metadata dictionary

        Returns:
            Path to output directory
        """
        logger.info(f"Exporting alignment to {self.output_dir}")

        self._write_mapping(result.mapping)
        self._write_generation_stats(result.generation_stats)

        metadata = dict(run_metadata)
        metadata["results"] = {
            "fitness": result.fitness,
            "target_fitness": result.target_fitness,
            "reached_target": result.reached_target,
            "generations": result.generations,
            "catastrophes": result.catastrophes,
            "improvements": result.improvements,
            "evaluations": result.evaluations,
            "metrics": metrics or {},
        }
        self._save_metadata(metadata)

        logger.info(f"Alignment exported successfully to {self.output_dir}")

        return self.output_dir

    def _write_mapping(self, mapping: Dict) -> Path:
        """Write mapping.csv with per-vertex conserved edge counts."""
        conserved_degree = {source: 0 for source in mapping}
        for u, v in self.graph1.edges():
            if is_conserved_edge(self.graph2, mapping, u, v):
                conserved_degree[u] += 1
                conserved_degree[v] += 1

        df = pd.DataFrame(
            {
                "source": [str(s) for s in mapping],
                "target": [str(t) for t in mapping.values()],
                "conserved_edges": [conserved_degree[s] for s in mapping],
            }
        )
        mapping_file = self.data_dir / "mapping.csv"
        df.to_csv(mapping_file, index=False)
        logger.info(f"Saved mapping ({len(df)} vertices): {mapping_file}")
        return mapping_file

    def _write_generation_stats(self, generation_stats) -> Optional[Path]:
        if not generation_stats:
            return None
        stats_file = self.data_dir / "generation_stats.csv"
        pd.DataFrame(generation_stats).to_csv(stats_file, index=False)
        logger.debug(f"Saved generation stats: {stats_file}")
        return stats_file

    def _save_metadata(self, metadata: Dict):
        """Save run metadata as JSON."""
        meta_file = self.output_dir / "run_meta.json"

        # Ensure datetime objects are serializable
        serializable_meta = self._make_serializable(metadata)

        with open(meta_file, 'w') as f:
            json.dump(serializable_meta, f, indent=2)

        logger.info(f"Saved metadata: {meta_file}")

    def _make_serializable(self, obj):
        """Make object JSON serializable."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        elif isinstance(obj, dict):
            return {str(k): self._make_serializable(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [self._make_serializable(item) for item in obj]
        elif isinstance(obj, Path):
            return str(obj)
        elif isinstance(obj, np.generic):
            return obj.item()
        else:
            return obj
