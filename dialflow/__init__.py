"""dialflow: local-first editing of dialplan and journey graphs."""

from __future__ import annotations

__version__ = "0.1.0"
