"""LeakTrail — resumable credential-leak scanning over git history."""

__version__ = "0.1.0"
