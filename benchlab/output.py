"""Write a session's results to reproducible CSV and text files.

This module is the output boundary between the in-memory report and files an
instructor or learner can keep after the session ends.
"""

from __future__ import annotations

import logging
import os
from typing import Tuple

from .reporting import measurement_frame, summary_lines, timeline_frame
from .results import ResultsReport

logger = logging.getLogger(__name__)


def save_report(report: ResultsReport, output_dir: str = "output") -> Tuple[str, str, str]:
    """Save the timeline, measurement record and summary text.

    Args:
        report (ResultsReport): Report from
            :meth:`~benchlab.session.ExperimentSession.results_report`.
        output_dir (str): Directory where files are written; created if
            missing.

    Returns:
        tuple[str, str, str]: Paths to ``timeline.csv``, ``measurements.csv``
        and ``summary.txt``.
    """
    os.makedirs(output_dir, exist_ok=True)

    timeline_path = os.path.join(output_dir, "timeline.csv")
    measurements_path = os.path.join(output_dir, "measurements.csv")
    summary_path = os.path.join(output_dir, "summary.txt")

    timeline_frame(report).to_csv(timeline_path, index=False)
    measurement_frame(report).to_csv(measurements_path, index=False)
    with open(summary_path, "w", encoding="utf-8") as handle:
        handle.write("\n".join(summary_lines(report)) + "\n")

    logger.info("Saved timeline to %s", timeline_path)
    logger.info("Saved measurements to %s", measurements_path)
    logger.info("Saved summary to %s", summary_path)

    return timeline_path, measurements_path, summary_path
