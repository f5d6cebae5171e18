"""Duty rotation bot for messenger groups.

Subpackages: ``config`` (YAML settings), ``core`` (errors, types, time
helpers), ``rotation`` (members, log, selection, persistence), ``commands``
(in-group corrective commands), ``interfaces`` (messaging transport),
``runtime`` (Announce + Watch loop) and ``telemetry`` (logging).
"""

__version__ = "0.1.0"

__all__: list[str] = []
