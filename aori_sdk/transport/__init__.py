"""
Transport layer for the Aori SDK.

A session talks to Aori over two long-lived text channels. This package
defines the channel interface and its implementations: websockets for
real endpoints and an in-memory channel for offline use.
"""
from .base import Channel, Frame
from .memory import MemoryChannel
from .websocket import WebSocketChannel, connect_channel

__all__ = ['Channel', 'Frame', 'MemoryChannel', 'WebSocketChannel', 'connect_channel']
