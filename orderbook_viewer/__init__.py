"""
Order Book Viewer - live order book and cumulative depth chart.

Architecture:
- datafeed/: Push/poll feed client and snapshot normalization
- engine/: Update gate, depth aggregation, order book store
- ui/: Order tables + depth chart (Textual TUI)
"""

__version__ = "0.1.0"
