from __future__ import annotations

OK = 0
ERR_VIOLATIONS = 1
ERR_CONFIG = 2
ERR_COLLECTOR = 3
ERR_ARTIFACT = 4
ERR_INTERNAL = 99

__all__ = ["ERR_ARTIFACT", "ERR_COLLECTOR", "ERR_CONFIG", "ERR_INTERNAL", "ERR_VIOLATIONS", "OK"]
