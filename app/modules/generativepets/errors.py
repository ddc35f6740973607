"""Domain errors raised by the chat services and mapped to HTTP bodies in app.main."""


class ChatNotFound(LookupError):
    def __init__(self, chat_id: str):
        super().__init__(f"chat {chat_id} not found")
        self.chat_id = chat_id


class LLMError(RuntimeError):
    """Provider call failed; the caller only ever sees an opaque 500."""
