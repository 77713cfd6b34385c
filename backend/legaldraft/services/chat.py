from typing import Iterable, List, Optional, Tuple

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from ..schemas import ChatMessage


class ChatSession:
    """
    An ordered, append-only chat transcript.

    Each drafting stage owns its own instance (custom-document drafting and
    AI-edit refinement), so the two conversations never share turns. The
    generative service is stateless, so the whole transcript is replayed in
    order on every call.
    """

    def __init__(self, messages: Optional[Iterable[ChatMessage]] = None):
        self._messages: List[ChatMessage] = [ChatMessage(role=m.role, content=m.content) for m in messages or ()]

    @classmethod
    def seeded(cls, greeting: str) -> "ChatSession":
        session = cls()
        session.append_assistant(greeting)
        return session

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def user_turns(self) -> List[str]:
        return [m.content for m in self._messages if m.role == "user"]

    def has_user_turn(self) -> bool:
        return any(m.role == "user" for m in self._messages)

    def append_user(self, content: str) -> ChatMessage:
        return self._append("user", content)

    def append_assistant(self, content: str) -> ChatMessage:
        return self._append("assistant", content)

    def _append(self, role: str, content: str) -> ChatMessage:
        message = ChatMessage(role=role, content=content)
        self._messages.append(message)
        return message

    def __len__(self) -> int:
        return len(self._messages)


def to_langchain_messages(messages: Iterable[ChatMessage]) -> List[BaseMessage]:
    converted: List[BaseMessage] = []
    for m in messages:
        if m.role == "user":
            converted.append(HumanMessage(content=m.content))
        else:
            converted.append(AIMessage(content=m.content))
    return converted
