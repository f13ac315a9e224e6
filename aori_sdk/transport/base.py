"""
Channel interface shared by all transport implementations.
"""
from abc import ABC, abstractmethod
from typing import Union

# Frames arrive as text or binary messages
Frame = Union[str, bytes]


class Channel(ABC):
    """
    Abstract base class for a persistent bidirectional message channel.

    Implementations surface their own failures as SDK exceptions:
    ``SendError`` for writes and ``AoriConnectionError`` for reads on a
    broken or closed channel.
    """

    url: str

    @abstractmethod
    def send_text(self, text: str) -> None:
        """
        Send one text frame.

        Raises:
            SendError: If the channel is closed or the write fails
        """
        pass

    @abstractmethod
    def receive(self) -> Frame:
        """
        Block until the next frame arrives.

        Raises:
            AoriConnectionError: If the channel is closed
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the channel and release its resources."""
        pass
