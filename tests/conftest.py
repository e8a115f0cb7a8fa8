"""Shared pytest setup for the benchlab suite.

Puts the repository root on ``sys.path`` so ``benchlab`` imports without an
install, and selects the headless Agg backend before any plot is drawn.
"""

import os
import sys

import matplotlib

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

matplotlib.use("Agg")
