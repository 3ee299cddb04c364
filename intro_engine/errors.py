"""
Exceptions raised by the Intro Match Engine
"""


class MatchEngineError(Exception):
    """Base class for engine errors"""


class ConversationNotFoundError(MatchEngineError):
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class PersistenceError(MatchEngineError):
    """A match suggestion could not be written"""
