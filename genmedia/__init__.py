from .api import GenerateImages, GenerateVideos, build_engine

__all__ = [
    "GenerateImages",
    "GenerateVideos",
    "build_engine",
]
