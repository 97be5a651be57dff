"""Runtime services shared by the analysis pipeline: caching, rate limiting, health checks."""
