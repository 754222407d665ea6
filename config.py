MIN_DISKS = 3
MAX_DISKS = 10
DEFAULT_DISKS = 5

LEADERBOARD_SIZE = 10
MAX_TIME_SECONDS = 86400  # 24 hours
NAME_LENGTH = 3

EXPORT_VERSION = 1

STORAGE_KEYS = {
    "high_scores": "hanoi_highscores",
    "scores_visible": "hanoi_scores_visible",
    "theme": "hanoi_theme",
    "disk_count": "hanoi_disk_count",
}

THEMES = {
    "green": {
        "colors": {
            "bg": "#0a0a0a",
            "text": "#00ff00",
            "glow": "#00ff00",
            "error": "#ff0000",
            "win": "#ffff00",
            "perfect": "#00ffff",
        },
        "ascii": "classic",
    },
    "amber": {
        "colors": {
            "bg": "#0a0a0a",
            "text": "#ffb000",
            "glow": "#ffb000",
            "error": "#ff4444",
            "win": "#ffffff",
            "perfect": "#ffd700",
        },
        "ascii": "classic",
    },
    "blue": {
        "colors": {
            "bg": "#0a0a0a",
            "text": "#00bfff",
            "glow": "#00bfff",
            "error": "#ff6b6b",
            "win": "#ffd700",
            "perfect": "#ff69b4",
        },
        "ascii": "classic",
    },
    "minimal": {
        "colors": {
            "bg": "#1a1a1a",
            "text": "#e0e0e0",
            "glow": "#888888",
            "error": "#e74c3c",
            "win": "#f1c40f",
            "perfect": "#3498db",
        },
        "ascii": "simple",
    },
}

THEME_ORDER = ["green", "amber", "blue", "minimal"]
DEFAULT_THEME = "green"

# Primary and secondary binding for each pole
POLE_KEYS = {
    "1": 0, "2": 1, "3": 2,
    "f": 0, "j": 1, "k": 2,
    "F": 0, "J": 1, "K": 2,
}


def minimal_moves(disk_count: int) -> int:
    return 2 ** disk_count - 1


def valid_disk_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and MIN_DISKS <= value <= MAX_DISKS
