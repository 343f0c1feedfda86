"""Telemetry adapters.

- logging_telemetry: JSON events to a Python logger
- http: JSON events POSTed to a collector
"""
