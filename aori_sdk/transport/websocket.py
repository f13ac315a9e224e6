"""
Websocket channel implementation backed by the ``websockets`` sync client.
"""
import logging
from typing import Optional

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import ClientConnection, connect

from ..exceptions import AoriConnectionError, SendError
from .base import Channel, Frame

logger = logging.getLogger(__name__)


class WebSocketChannel(Channel):
    """A channel over a single websocket connection."""

    def __init__(self, url: str, connection: ClientConnection):
        self.url = url
        self._connection = connection

    def send_text(self, text: str) -> None:
        try:
            self._connection.send(text)
        except (WebSocketException, OSError) as e:
            logger.error(f"Websocket send to {self.url} failed: {e}")
            raise SendError(f"Failed to send on {self.url}: {e}") from e

    def receive(self) -> Frame:
        try:
            return self._connection.recv()
        except ConnectionClosed as e:
            raise AoriConnectionError(f"Channel {self.url} is closed: {e}") from e
        except (WebSocketException, OSError) as e:
            raise AoriConnectionError(f"Failed to receive on {self.url}: {e}") from e

    def close(self) -> None:
        self._connection.close()
        logger.debug(f"Closed websocket channel {self.url}")


def connect_channel(url: str, open_timeout: Optional[float] = 10) -> WebSocketChannel:
    """
    Open a websocket channel.

    Args:
        url: ``ws://`` or ``wss://`` endpoint
        open_timeout: Seconds allowed for the opening handshake

    Returns:
        Connected WebSocketChannel

    Raises:
        AoriConnectionError: If the endpoint is unreachable or the handshake fails
    """
    try:
        connection = connect(url, open_timeout=open_timeout)
    except (WebSocketException, OSError, TimeoutError) as e:
        logger.error(f"Failed to connect to {url}: {e}")
        raise AoriConnectionError(f"Failed to connect to {url}: {e}") from e
    logger.info(f"Connected to {url}")
    return WebSocketChannel(url, connection)
