"""Prometheus exporter for eGain indoor climate sensors."""
