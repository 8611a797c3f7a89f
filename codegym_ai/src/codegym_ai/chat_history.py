"""
Chat History

Append-only, insertion-ordered conversation for the current problem, backed
by the persistence port under the chatbot-history key.
"""

import itertools
import logging
import time
from typing import Iterator, List, Optional

from pydantic import ValidationError

from codegym_ai.schemas import ChatMessage, ChatTurn, ResponseLength, Sender
from codegym_ai.storage import CHAT_HISTORY_KEY, KeyValueStore

logger = logging.getLogger(__name__)

_counter = itertools.count()


def new_message_id() -> str:
    # Millisecond timestamp plus a counter so ids stay unique inside one tick
    return f"{int(time.time() * 1000)}-{next(_counter)}"


class ChatHistory:
    """Ordered chat messages, loaded on init and saved on every change."""

    def __init__(self, store: KeyValueStore, key: str = CHAT_HISTORY_KEY):
        self.store = store
        self.key = key
        self._messages: List[ChatMessage] = self._load()

    def _load(self) -> List[ChatMessage]:
        data = self.store.load_json(self.key)
        if not isinstance(data, list):
            return []
        messages = []
        for item in data:
            try:
                messages.append(ChatMessage.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable stored chat message: {e.error_count()} error(s)")
        return messages

    def _save(self) -> None:
        self.store.save_json(self.key, [m.to_wire() for m in self._messages])

    def append(
        self,
        sender: Sender,
        text: str,
        response_length: ResponseLength = "medium",
    ) -> ChatMessage:
        message = ChatMessage(
            id=new_message_id(),
            sender=sender,
            text=text,
            response_length=response_length,
        )
        self._messages.append(message)
        self._save()
        return message

    def clear(self) -> None:
        """Empty the history and drop its storage key. Safe to call repeatedly."""
        self._messages = []
        self.store.remove_item(self.key)

    def turns(self, exclude_last: int = 0) -> List[ChatTurn]:
        """History as replayable {sender, text} turns, oldest first."""
        messages = self._messages[:len(self._messages) - exclude_last] if exclude_last else self._messages
        return [m.as_turn() for m in messages]

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    @property
    def last(self) -> Optional[ChatMessage]:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(list(self._messages))
