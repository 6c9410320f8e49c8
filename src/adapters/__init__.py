"""Adapters connecting the core to files, subprocesses, REST and output formats."""
