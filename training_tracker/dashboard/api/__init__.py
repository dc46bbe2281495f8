from . import auth, progress, tasks

__all__ = ["auth", "progress", "tasks"]
