from .profile_store import InMemoryProfileRepository

__all__ = ["InMemoryProfileRepository"]
