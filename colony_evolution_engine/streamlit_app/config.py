from __future__ import annotations

from pathlib import Path

from colony_evolution_engine import UnlockStatus

BASE_DIR = Path(__file__).resolve().parents[2]
INPUT_DIR = BASE_DIR / "inputs"

DEFAULT_COLONY_ID = "colony-1"
STARTING_POINTS = 250
AWARD_STEP = 50
VISUAL_LOG_LIMIT = 10

STATUS_ICONS = {
    UnlockStatus.UNLOCKED: "✅",
    UnlockStatus.AVAILABLE: "🧬",
    UnlockStatus.UNAFFORDABLE: "💰",
    UnlockStatus.LOCKED: "🔒",
}
