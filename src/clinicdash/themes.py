"""Doctor colour themes (presentation only).

Known doctors have a fixed theme; everyone else gets one from a
deterministic string hash, so a doctor keeps the same colours across the
dashboard, carousel and detail page. Nothing here affects the numbers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

__all__ = ["THEMES", "ColorTheme", "name_hash", "theme_for", "theme_index"]


@dataclass(frozen=True)
class ColorTheme:
    name: str
    gradient: str
    primary: str
    secondary: str
    accent: str
    chart_color: str
    bar_color: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


THEMES: tuple[ColorTheme, ...] = (
    ColorTheme("Ocean", "from-blue-900 via-cyan-800 to-teal-900", "#06b6d4", "#0891b2", "#22d3ee", "#06b6d4", "#0891b2"),
    ColorTheme("Crimson", "from-red-900 via-red-800 to-rose-900", "#dc2626", "#b91c1c", "#ef4444", "#f97316", "#ea580c"),
    ColorTheme("Forest", "from-green-900 via-emerald-800 to-teal-900", "#10b981", "#059669", "#34d399", "#10b981", "#059669"),
    ColorTheme("Royal", "from-purple-900 via-violet-800 to-indigo-900", "#8b5cf6", "#7c3aed", "#a78bfa", "#8b5cf6", "#7c3aed"),
    ColorTheme("Ruby", "from-rose-900 via-pink-800 to-fuchsia-900", "#ec4899", "#db2777", "#f472b6", "#ec4899", "#db2777"),
    ColorTheme("Golden", "from-amber-900 via-yellow-800 to-orange-900", "#f59e0b", "#d97706", "#fbbf24", "#f59e0b", "#d97706"),
    ColorTheme("Arctic", "from-slate-900 via-blue-900 to-cyan-900", "#3b82f6", "#2563eb", "#60a5fa", "#3b82f6", "#2563eb"),
    ColorTheme("Lavender", "from-indigo-900 via-purple-900 to-pink-900", "#6366f1", "#4f46e5", "#818cf8", "#6366f1", "#4f46e5"),
)

# "First-Last" → theme index
_ASSIGNED: dict[str, int] = {
    "Hamid-Hajian": 0,
    "Joseph-Grace": 1,
    "Liam-Anderson": 2,
    "Emma-Wilson": 3,
    "Sophia-Martinez": 4,
    "Noah-Johnson": 5,
    "Olivia-Brown": 6,
    "William-Davis": 7,
}


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >= 1 << 31 else value


def name_hash(text: str) -> int:
    """``h = code + (h << 5) - h`` over UTF-16 code units, shift wrapped to int32."""
    raw = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(raw), 2):
        code = raw[i] | (raw[i + 1] << 8)
        h = code + (_to_int32(_to_int32(h) << 5) - h)
    return h


def theme_index(first_name: str, last_name: str) -> int:
    key = f"{first_name}-{last_name}"
    if key in _ASSIGNED:
        return _ASSIGNED[key] % len(THEMES)
    return abs(name_hash(key)) % len(THEMES)


def theme_for(first_name: str, last_name: str) -> ColorTheme:
    return THEMES[theme_index(first_name, last_name)]
