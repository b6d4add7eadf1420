import itertools
import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from codechat.errors import EmptyMessage
from codechat.observable import Observable

logger = logging.getLogger(__name__)

USER_ID = "You"
PEER_ID = "Alex"
AUTO_REPLY_TEXT = "That's a great point! Let me check the code..."

# Greeting shown when a workspace opens: (sender, text, minutes ago)
SEED_MESSAGES = (
    (PEER_ID, "Hey! Welcome to the coding workspace 👋", 5),
    (USER_ID, "Ready to code together?", 4),
)


class Direction(str, Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


@dataclass(frozen=True)
class ChatMessage:
    id: int
    text: str
    sender_id: str
    sent_at: object
    direction: Direction

    def to_dict(self):
        return {
            "id": self.id,
            "text": self.text,
            "sender_id": self.sender_id,
            "sent_at": self.sent_at.isoformat(),
            "direction": self.direction.value,
        }


@dataclass(frozen=True)
class ChatSnapshot:
    messages: tuple
    online_count: int
    pending_replies: int


class ChatSession(Observable):
    """Append-only chat history with a simulated peer.

    Every ``send`` schedules its own reply; replies to concurrent sends may
    land in any order relative to each other but always after their send.
    """

    def __init__(self, scheduler, reply_delay=1.0, online_count=3, seed_history=False,
                 user_id=USER_ID, peer_id=PEER_ID, reply_text=AUTO_REPLY_TEXT):
        super().__init__()
        if online_count < 0:
            raise ValueError("online_count must be >= 0")

        self.scheduler = scheduler
        self.reply_delay = reply_delay
        self.user_id = user_id
        self.peer_id = peer_id
        self.reply_text = reply_text
        self.online_count = online_count
        self.pending_auto_reply_for = set()
        self._history = []
        self._ids = itertools.count(1)

        if seed_history:
            now = scheduler.now()
            for sender, text, minutes_ago in SEED_MESSAGES:
                direction = Direction.OUTGOING if sender == user_id else Direction.INCOMING
                self._append(text, sender, direction, sent_at=now - timedelta(minutes=minutes_ago))

    def history(self):
        return tuple(self._history)

    def presence(self):
        return self.online_count

    def set_presence(self, count):
        """Update the online count from an external presence feed"""
        if count < 0:
            raise ValueError("online_count must be >= 0")
        self.online_count = count
        self._notify()

    def snapshot(self):
        return ChatSnapshot(
            messages=self.history(),
            online_count=self.online_count,
            pending_replies=len(self.pending_auto_reply_for),
        )

    def send(self, text):
        if not isinstance(text, str) or not text.strip():
            raise EmptyMessage()

        message = self._append(text, self.user_id, Direction.OUTGOING)
        self.pending_auto_reply_for.add(message.id)
        self.scheduler.schedule(self.reply_delay, lambda: self._deliver_reply(message.id))

        logger.info(f"💬 Message {message.id} sent, reply due in {self.reply_delay}s")
        self._notify()
        return message

    def receive(self, text, sender_id=None):
        """Append a message from someone else (the seam for a real broker feed)"""
        if not isinstance(text, str) or not text.strip():
            raise EmptyMessage()

        message = self._append(text, sender_id or self.peer_id, Direction.INCOMING)
        self._notify()
        return message

    def _deliver_reply(self, message_id):
        self.pending_auto_reply_for.discard(message_id)
        reply = self._append(self.reply_text, self.peer_id, Direction.INCOMING)
        logger.info(f"Auto-reply {reply.id} delivered for message {message_id}")
        self._notify()

    def _append(self, text, sender_id, direction, sent_at=None):
        message = ChatMessage(
            id=next(self._ids),
            text=text,
            sender_id=sender_id,
            sent_at=sent_at or self.scheduler.now(),
            direction=direction,
        )
        self._history.append(message)
        return message
