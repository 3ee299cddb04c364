"""
In-memory storage for conversations, contacts and match suggestions.

Suggestions are keyed on (conversation_id, contact_id): writing the same pair
twice replaces the row instead of adding a second one.
"""

import logging
import threading
from datetime import datetime
from typing import List, Dict, Optional, Tuple

from ..errors import PersistenceError
from ..models.schemas import Contact, ConversationSnapshot, MatchSuggestion

logger = logging.getLogger(__name__)


class MatchSuggestionRepository:
    """Upsert-only store of match suggestions"""

    def __init__(self):
        self._rows: Dict[Tuple[str, str], MatchSuggestion] = {}
        self._lock = threading.Lock()

    def upsert(self, suggestion: MatchSuggestion) -> MatchSuggestion:
        """
        Insert or overwrite the row for (conversation_id, contact_id).

        An overwritten row keeps its id and created_at.
        """
        if not suggestion.conversation_id or not suggestion.contact_id:
            raise PersistenceError("conversation_id and contact_id are required")

        key = (suggestion.conversation_id, suggestion.contact_id)
        with self._lock:
            existing = self._rows.get(key)
            if existing is not None:
                suggestion = suggestion.model_copy(update={
                    "id": existing.id,
                    "created_at": existing.created_at,
                    "updated_at": datetime.utcnow(),
                })
            self._rows[key] = suggestion

        logger.debug(
            "%s suggestion %s for contact %s",
            "Updated" if existing else "Inserted", suggestion.id, suggestion.contact_id,
        )
        return suggestion

    def get(self, conversation_id: str, contact_id: str) -> Optional[MatchSuggestion]:
        return self._rows.get((conversation_id, contact_id))

    def list_for_conversation(self, conversation_id: str) -> List[MatchSuggestion]:
        """Rows for one conversation, best score first"""
        with self._lock:
            rows = [r for (conv_id, _), r in self._rows.items() if conv_id == conversation_id]
        return sorted(rows, key=lambda r: r.score, reverse=True)

    def count(self) -> int:
        return len(self._rows)

    def clear(self):
        with self._lock:
            self._rows.clear()


class ConversationStore:
    """Conversation snapshots and the contact book they are matched against"""

    def __init__(self):
        self._conversations: Dict[str, ConversationSnapshot] = {}
        self._contacts: Dict[str, Contact] = {}
        self._lock = threading.Lock()

    def save_conversation(self, snapshot: ConversationSnapshot) -> ConversationSnapshot:
        with self._lock:
            self._conversations[snapshot.conversation_id] = snapshot
        return snapshot

    def get_conversation(self, conversation_id: str) -> Optional[ConversationSnapshot]:
        return self._conversations.get(conversation_id)

    def list_conversations(self) -> List[ConversationSnapshot]:
        return list(self._conversations.values())

    def save_contacts(self, contacts: List[Contact]) -> int:
        """Add or replace contacts by id; returns the number written"""
        with self._lock:
            for contact in contacts:
                self._contacts[contact.id] = contact
        return len(contacts)

    def list_contacts(self) -> List[Contact]:
        """All contacts, in insertion order"""
        return list(self._contacts.values())

    def clear(self):
        with self._lock:
            self._conversations.clear()
            self._contacts.clear()
