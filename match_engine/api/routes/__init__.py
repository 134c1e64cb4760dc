# API Routes Module
from match_engine.api.routes import (
    admin,
    matches,
    profiles,
)

__all__ = [
    "admin",
    "matches",
    "profiles",
]
