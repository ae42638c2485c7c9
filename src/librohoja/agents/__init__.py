from .assistant import LibraryAssistant, build_chat_model
from .local import ChatReply, Recommendation

__all__ = ["LibraryAssistant", "build_chat_model", "ChatReply", "Recommendation"]
