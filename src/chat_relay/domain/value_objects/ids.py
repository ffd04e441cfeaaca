from __future__ import annotations

import uuid
from typing import NewType

MessageId = NewType("MessageId", str)


def new_message_id() -> MessageId:
    return MessageId(str(uuid.uuid4()))
