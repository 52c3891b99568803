"""headcount: live user count over an incrementally maintained counter."""

__version__ = "1.0.0"
