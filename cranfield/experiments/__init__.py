"""Experiment drivers (parameter/model sweeps) over a built Cranfield index."""
