from .turn import ConversationTurnProcessor

__all__ = ["ConversationTurnProcessor"]
