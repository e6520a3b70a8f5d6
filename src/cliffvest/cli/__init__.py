"""Command line interface for cliffvest."""
