"""Core application configuration & tunable feed rules.

Rules that may evolve (display set, feed limits, override bounds, recovery
window, housekeeping cadence) are centralized here so they can be adjusted
without diving into service logic. Values are module constants read from the
environment once at import; tests monkeypatch the dicts where needed.
"""
from __future__ import annotations

import os


def _env_flag(name: str, default: str = "false") -> bool:
	return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


# -------------------------------- Displays -------------------------------- #
# Physical signage endpoints. Comma-separated positive integers.
_displays_raw = os.getenv("DISPLAY_IDS", "1,2,3").strip()
DISPLAY_IDS: list[int] = sorted(
	{int(d.strip()) for d in _displays_raw.split(",") if d.strip().isdigit() and int(d.strip()) > 0}
) or [1, 2, 3]

# ---------------------------------- Feed ---------------------------------- #
FEED_SETTINGS: dict[str, int | bool | tuple[str, ...]] = {
	"default_limit": 100,
	"max_limit": 200,
	# Suggested on-screen seconds for still images; videos play to their end.
	"image_duration_seconds": 10,
	"image_extensions": ("png", "jpg", "jpeg", "gif", "webp", "bmp", "svg"),
	# One eligibility-only retry when the targeted query fails.
	"degraded_fallback": _env_flag("FEED_DEGRADED_FALLBACK", "true"),
	# Expose error detail strings in feed_failed responses.
	"diagnostics": _env_flag("FEED_DIAGNOSTICS"),
}

# -------------------------------- Overrides ------------------------------- #
OVERRIDE_SETTINGS: dict[str, int] = {
	"min_minutes": 1,
	"max_minutes": 60,
	"default_minutes": 10,
	"history_limit": 50,
}

# -------------------------------- Recovery -------------------------------- #
RECOVERY_SETTINGS: dict[str, int | str] = {
	"window_days": 7,
	"token_bytes": 24,  # 48 hex chars
	# Used to build the link handed to the notification collaborator.
	"public_base_url": os.getenv("PUBLIC_BASE_URL", "http://localhost:8000"),
}

# ------------------------------ Housekeeping ------------------------------ #
HOUSEKEEPING_SETTINGS: dict[str, bool | float] = {
	"enabled": _env_flag("HOUSEKEEPING_ENABLED", "true"),
	"interval_seconds": float(os.getenv("HOUSEKEEPING_INTERVAL_SECONDS", str(12 * 60 * 60))),
}

__all__ = [
	"DISPLAY_IDS",
	"FEED_SETTINGS",
	"OVERRIDE_SETTINGS",
	"RECOVERY_SETTINGS",
	"HOUSEKEEPING_SETTINGS",
]
