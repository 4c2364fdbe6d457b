"""Latency Probe — trade feed latency monitoring for public exchange APIs."""

__version__ = "0.1.0"
