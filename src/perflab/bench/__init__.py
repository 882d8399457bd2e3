"""Benchmarking harness for perflab.

Runs arbitrary units of work through warm-up and measured trials,
computes summary statistics, and serializes the results for
comparison across runs and machines.
"""
