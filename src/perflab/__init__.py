"""perflab — statistical benchmarking harness for arbitrary units of work."""

__version__ = "0.1.0"
