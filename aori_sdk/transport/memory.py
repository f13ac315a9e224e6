"""
In-memory channel implementation.

This channel never touches the network. Text sent on it is recorded in
``sent`` and frames queued with ``feed`` are returned by ``receive``, which
makes it a stand-in for a real endpoint in tests and offline development.
"""
import json
import logging
import queue
from typing import Any, Dict, List, Optional

from ..exceptions import AoriConnectionError, SendError
from .base import Channel, Frame

logger = logging.getLogger(__name__)


class MemoryChannel(Channel):
    """A channel that records outbound text and replays queued frames."""

    def __init__(self, url: str = "memory://", receive_timeout: Optional[float] = None):
        """
        Args:
            url: Label for the channel, used in logs and errors
            receive_timeout: Seconds ``receive`` waits for a frame; None blocks forever
        """
        self.url = url
        self.sent: List[str] = []
        self.closed = False
        self.receive_timeout = receive_timeout
        self._inbound: "queue.Queue[Frame]" = queue.Queue()

    def send_text(self, text: str) -> None:
        if self.closed:
            raise SendError(f"Failed to send on {self.url}: channel is closed")
        self.sent.append(text)
        logger.debug(f"MemoryChannel {self.url} recorded {len(text)} chars")

    def receive(self) -> Frame:
        if self.closed:
            raise AoriConnectionError(f"Channel {self.url} is closed")
        try:
            return self._inbound.get(timeout=self.receive_timeout)
        except queue.Empty:
            raise AoriConnectionError(
                f"No frame received on {self.url} within {self.receive_timeout}s"
            )

    def close(self) -> None:
        self.closed = True

    def feed(self, frame: Frame) -> None:
        """Queue an inbound frame."""
        self._inbound.put(frame)

    def feed_json(self, payload: Dict[str, Any]) -> None:
        """Queue an inbound JSON text frame."""
        self.feed(json.dumps(payload))

    def sent_json(self) -> List[Dict[str, Any]]:
        """Decode every recorded outbound frame."""
        return [json.loads(text) for text in self.sent]
