"""
Command-line interface for the fluency engine.

Entry point: fluency (fluency.cli.main:run).
"""
