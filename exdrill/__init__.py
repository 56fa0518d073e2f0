"""Run, verify, watch and track small compiler exercises listed in info.toml."""

__version__ = "0.1.0"