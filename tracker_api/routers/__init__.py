from tracker_api.routers import health, projects, requests, roadmap

__all__ = [
    "health",
    "projects",
    "requests",
    "roadmap",
]
