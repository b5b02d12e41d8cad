"""Converts legacy log envelopes into event envelopes."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .events import Envelope, EventType, LogMessage

logger = logging.getLogger(__name__)

LEGACY_DROPSONDE_ORIGIN = "legacy"


@dataclass
class LegacyLogMessage:
    class MessageType(enum.IntEnum):
        OUT = 1
        ERR = 2

    message: Optional[bytes] = None
    message_type: Optional[LegacyLogMessage.MessageType] = None
    timestamp: Optional[int] = None
    app_id: Optional[str] = None
    source_id: Optional[str] = None
    source_name: Optional[str] = None


@dataclass
class LegacyEnvelope:
    routing_key: Optional[str] = None
    signature: Optional[bytes] = None
    log_message: Optional[LegacyLogMessage] = None


def convert_message(legacy_envelope: LegacyEnvelope) -> Envelope:
    """Build the log-message envelope equivalent to ``legacy_envelope``."""
    legacy = legacy_envelope.log_message
    if legacy is None:
        raise ValueError("legacy envelope carries no log message")
    message_type = None
    if legacy.message_type is not None:
        message_type = LogMessage.MessageType(int(legacy.message_type))
    return Envelope(
        origin=LEGACY_DROPSONDE_ORIGIN,
        event_type=EventType.LOG_MESSAGE,
        log_message=LogMessage(
            message=legacy.message,
            message_type=message_type,
            timestamp=legacy.timestamp,
            app_id=legacy.app_id,
            source_type=legacy.source_name,
            source_instance=legacy.source_id,
        ),
    )


class LegacyMessageConverter:
    """Streams legacy envelopes through ``convert_message``."""

    def run(self, inputs: Iterable[LegacyEnvelope], output: Callable[[Envelope], object]) -> None:
        for legacy_envelope in inputs:
            logger.debug("legacyMessageConverter: converting message %r", legacy_envelope)
            output(convert_message(legacy_envelope))