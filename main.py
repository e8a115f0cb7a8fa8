#!/usr/bin/env python3
"""
Main script for running a scripted experiment session.
"""

# Script overview:
# 1) Load a built-in experiment (catalog + guided steps).
# 2) Read commands, one per line, from a script file or use the experiment's
#    canonical walkthrough:
#        equip <equipment-id>
#        add <reagent-id> <volume-mL>
#        indicator
#        measure [label]
#        undo
#        clear <reagent-id>
#        reset
# 3) Log every accepted and rejected command.
# 4) Export the results report (CSV + summary text) and, optionally, a figure.

import argparse
import logging
import os
import shlex
import sys
import time

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler("benchlab_session.log", mode="w"),
    ],
)

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from benchlab.errors import SimulationError
from benchlab.experiments import PRESETS, load_experiment
from benchlab.output import save_report
from benchlab.plotting import plot_measurements
from benchlab.reporting import summary_lines
from benchlab.session import ExperimentSession

WALKTHROUGHS = {
    "ethanoic-buffer": [
        "equip test-tube",
        "add ethanoic-acid 10",
        "indicator",
        "measure Ethanoic acid",
        "add sodium-ethanoate 5",
        "measure Buffer",
    ],
    "ammonium-buffer": [
        "equip test-tube",
        "add nh4oh-0-1m 10",
        "indicator",
        "measure NH4OH",
        "add nh4cl-0-1m 5",
        "measure NH4OH + NH4Cl",
    ],
    "hcl-ph": [
        "equip test-tube",
        "add hcl-0-1m 10",
        "indicator",
        "measure",
        "clear hcl-0-1m",
        "add hcl-0-01m 10",
        "measure",
        "clear hcl-0-01m",
        "add hcl-0-001m 10",
        "measure",
    ],
    "ph-comparison": [
        "equip test-tube",
        "add hcl-0-01m 5",
        "add universal-indicator 0.5",
        "measure",
        "clear hcl-0-01m",
        "add acetic-0-01m 5",
        "measure",
    ],
    "titration": [
        "equip conical-flask",
        "add oxalic-0-1n 10",
        "add phenolphthalein 0.2",
        "add naoh 12",
        "measure Rough",
        "add naoh 0.6",
        "measure Trial 1",
        "clear naoh",
        "clear oxalic-0-1n",
        "add oxalic-0-1n 10",
        "add naoh 12.6",
        "measure Trial 2",
    ],
}


def run_command(session, line):
    """Apply one script line to ``session``."""
    parts = shlex.split(line)
    if not parts:
        return
    verb, args = parts[0].lower(), parts[1:]
    if verb == "equip":
        session.place_equipment(args[0])
    elif verb == "add":
        session.add_reagent(args[0], float(args[1]))
    elif verb == "indicator":
        session.place_indicator()
    elif verb == "measure":
        session.measure_ph(" ".join(args) or None)
    elif verb == "undo":
        session.undo()
    elif verb == "clear":
        session.clear_reagent(args[0])
    elif verb == "reset":
        session.reset()
    else:
        raise ValueError(f"Unknown command '{verb}'")


def load_script(path):
    with open(path, encoding="utf-8") as handle:
        return [
            line.strip()
            for line in handle
            if line.strip() and not line.lstrip().startswith("#")
        ]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run a simulated bench experiment.")
    parser.add_argument("--experiment", choices=sorted(PRESETS), default="ethanoic-buffer")
    parser.add_argument("--script", help="Command file; defaults to the built-in walkthrough.")
    parser.add_argument("--output-dir", default="output")
    parser.add_argument("--no-plot", action="store_true", help="Skip the measured-pH figure.")
    return parser.parse_args(argv)


def main(argv=None):
    """Main execution function with per-command logging."""

    args = parse_args(argv)
    start_time = time.time()
    config = load_experiment(args.experiment)
    session = ExperimentSession(config)
    logging.info("Initialized experiment '%s': %s", config.name, config.title)

    commands = load_script(args.script) if args.script else WALKTHROUGHS[config.name]
    logging.info("Loaded %d commands", len(commands))

    rejected = 0
    for line in commands:
        try:
            run_command(session, line)
        except SimulationError as exc:
            rejected += 1
            logging.warning("Rejected '%s': %s", line, exc)

    progress = session.guided_progress()
    logging.info(
        "Completed %d of %d guided steps",
        len(progress.completed_step_ids),
        progress.total_steps,
    )
    if rejected:
        logging.warning("%d command(s) were rejected", rejected)

    report = session.results_report()
    for line in summary_lines(report):
        print(line)

    timeline_csv, measurements_csv, summary_txt = save_report(report, args.output_dir)
    logging.info("  - Timeline: %s", timeline_csv)
    logging.info("  - Measurements: %s", measurements_csv)
    logging.info("  - Summary: %s", summary_txt)

    if not args.no_plot and report.measurements:
        figure_path = plot_measurements(report, args.output_dir)
        logging.info("  - Measured pH figure: %s", figure_path)

    logging.info("Total execution time: %.2f seconds", time.time() - start_time)
    return 0 if progress.is_complete else 1


if __name__ == "__main__":
    sys.exit(main())
