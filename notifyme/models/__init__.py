from notifyme.models.session import ChatSession

__all__ = ["ChatSession"]
