# Model package init
from .models import GameConfig, SavedLevel  # noqa: F401 re-export

__all__ = [
    "GameConfig",
    "SavedLevel",
]
