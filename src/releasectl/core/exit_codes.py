from __future__ import annotations

OK = 0
ERR_VALIDATION = 1
ERR_CONFIG = 1
ERR_USAGE = 2
ERR_INTERNAL = 70
ERR_SILENT_SUCCESS = 99
ERR_NOT_FOUND = 127
