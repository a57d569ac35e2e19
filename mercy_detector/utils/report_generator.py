"""
Report generator for evaluation results.

Creates technical reports from evaluation results.
"""

import json
import os
from typing import Any, Dict, List, Optional


def effectiveness(correct: int, total: int) -> Optional[float]:
    """Success percentage, or None when there is nothing to divide by."""
    if total == 0:
        return None
    return correct / total * 100.0


def _format_pct(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.1f}%"


class ReportGenerator:
    """Generates technical reports from evaluation results."""

    def __init__(self, results_file: str):
        """Initialize with path to results file."""
        self.results_file = results_file
        self.results = self._load_results()

    def _load_results(self) -> Dict[str, Any]:
        """Load evaluation results from JSON file."""
        try:
            with open(self.results_file, "r") as f:
                results = json.load(f)
            return results
        except Exception as e:
            raise ValueError(f"Error loading results from {self.results_file}: {e}")

    def generate_report(self, output_file: str = None) -> str:
        """Generate a technical report comparing recognition-method variants."""
        report = []

        # Title
        report.append("# Hero detection - Technical evaluation report")
        report.append("")
        report.append("*Report generated automatically from evaluation results*")
        report.append("")

        summary = self.results.get("summary", [])

        # Executive summary
        report.append("## Executive summary")
        report.append("")
        report.append(f"- **Dataset size**: {self.results['total_videos']} videos")
        report.append(f"- **Variants evaluated**: {len(summary)}")
        best = self._best_variant()
        if best is not None:
            report.append(
                f"- **Best variant**: `{best['variant']}` with "
                f"{_format_pct(effectiveness(best['correct'], best['total']))} "
                "of frames correct"
            )
        report.append("")

        # Per-variant effectiveness
        report.append("## Hero identification by variant")
        report.append("")
        report.append("| Variant | Correct | Total | Effectiveness |")
        report.append("|---------|---------|-------|---------------|")
        for row in summary:
            pct = effectiveness(row["correct"], row["total"])
            report.append(
                f"| `{row['variant']}` | {row['correct']} | {row['total']} | "
                f"{_format_pct(pct)} |"
            )
        report.append("")

        action_rows = [row for row in summary if row.get("action_total", 0) > 0]
        if action_rows:
            report.append("## Weapon action identification by variant")
            report.append("")
            report.append("| Variant | Correct | Total | Effectiveness |")
            report.append("|---------|---------|-------|---------------|")
            for row in action_rows:
                pct = effectiveness(row["action_correct"], row["action_total"])
                report.append(
                    f"| `{row['variant']}` | {row['action_correct']} | "
                    f"{row['action_total']} | {_format_pct(pct)} |"
                )
            report.append("")

        # Per-video breakdown
        video_results = self.results.get("video_results", [])
        if video_results:
            report.append("## Results per video")
            report.append("")
            report.append("| Video | Method | Variant | Correct | Total | Effectiveness |")
            report.append("|-------|--------|---------|---------|-------|---------------|")
            for row in video_results:
                pct = effectiveness(row["correct"], row["total"])
                report.append(
                    f"| `{row['video']}` | {row['method']} | `{row['variant']}` | "
                    f"{row['correct']} | {row['total']} | {_format_pct(pct)} |"
                )
            report.append("")

        speed = self._processing_speed()
        if speed:
            report.append("## Processing speed")
            report.append("")
            report.append("| Variant | Avg ms / frame | Frames / s |")
            report.append("|---------|----------------|------------|")
            for variant, avg_ms, fps in speed:
                report.append(f"| `{variant}` | {avg_ms:.2f} | {fps:.1f} |")
            report.append("")

        weakest = self._weakest_heroes()
        if weakest:
            report.append("## Hardest heroes")
            report.append("")
            for variant, hero, recall in weakest:
                report.append(f"- `{variant}`: **{hero}** (recall {recall:.3f})")
            report.append("")

        report_text = "\n".join(report)

        # Save to file if specified
        if output_file:
            directory = os.path.dirname(output_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(report_text)

        return report_text

    def _best_variant(self) -> Optional[Dict[str, Any]]:
        """Variant with the highest effectiveness; earlier variants win ties."""
        best = None
        best_pct = None
        for row in self.results.get("summary", []):
            pct = effectiveness(row["correct"], row["total"])
            if pct is None:
                continue
            if best_pct is None or pct > best_pct:
                best, best_pct = row, pct
        return best

    def _processing_speed(self) -> List[tuple]:
        """Mean per-frame processing time and frame rate per variant, over videos."""
        per_variant: Dict[str, List[Dict[str, Any]]] = {}
        for row in self.results.get("video_results", []):
            if row.get("avg_processing_ms") is None:
                continue
            per_variant.setdefault(row["variant"], []).append(row)

        speed = []
        for variant, rows in per_variant.items():
            avg_ms = sum(r["avg_processing_ms"] for r in rows) / len(rows)
            fps = 1000.0 / avg_ms if avg_ms > 0 else 0.0
            speed.append((variant, avg_ms, fps))
        return speed

    def _weakest_heroes(self) -> List[tuple]:
        """Lowest-recall hero per variant from the classification reports."""
        weakest = []
        for variant, metrics in self.results.get("metrics", {}).items():
            report = metrics.get("classification_report") or {}
            per_class = {
                label: values
                for label, values in report.items()
                if isinstance(values, dict)
                and label not in ("macro avg", "weighted avg", "micro avg")
                and values.get("support", 0) > 0
            }
            if not per_class:
                continue
            hero = min(per_class, key=lambda label: per_class[label]["recall"])
            weakest.append((variant, hero, float(per_class[hero]["recall"])))
        return weakest
