from progressbar.routers import blocks, health, my

__all__ = [
    "blocks",
    "health",
    "my",
]
