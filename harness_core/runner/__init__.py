from .conversation import ConversationRunner

__all__ = ["ConversationRunner"]
