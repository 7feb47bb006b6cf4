"""Adapters that connect the core engine to files, streams and classifiers."""
