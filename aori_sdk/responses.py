"""
Response correlation helpers.

An AoriSession only sends. These helpers read frames from a channel, match
them to a request id, and pull the auth token out of an ``auth_wallet``
response. Malformed or failed responses raise ProtocolError.
"""
import json
import logging
from typing import Any, Dict, Optional

from ._rate_limited_log import rate_limited_log
from .exceptions import ProtocolError
from .session import AoriSession, AuthenticatedSession, normalize_auth_token
from .transport import Channel, Frame

logger = logging.getLogger(__name__)


def parse_frame(frame: Frame) -> Dict[str, Any]:
    """
    Decode a frame into a JSON object.

    Raises:
        ProtocolError: If the frame is not UTF-8 JSON or not an object
    """
    try:
        text = frame.decode("utf-8") if isinstance(frame, (bytes, bytearray)) else frame
        payload = json.loads(text)
    except (UnicodeDecodeError, ValueError) as e:
        raise ProtocolError(f"Invalid JSON frame: {e}") from e
    if not isinstance(payload, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload


def wait_for_response(
    channel: Channel,
    request_id: int,
    max_frames: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Read frames until the response to ``request_id`` arrives.

    Frames for other ids and unparseable frames are skipped.

    Args:
        channel: Channel the request was sent on
        request_id: Id returned by the session's send method
        max_frames: Give up after reading this many frames

    Returns:
        The ``result`` object of the matching response

    Raises:
        ProtocolError: If the response carries an error or no result, or
            ``max_frames`` is exhausted
        AoriConnectionError: If the channel closes while waiting
    """
    frames_read = 0
    while max_frames is None or frames_read < max_frames:
        frame = channel.receive()
        frames_read += 1

        try:
            payload = parse_frame(frame)
        except ProtocolError as e:
            rate_limited_log(f"Skipping unparseable frame on {channel.url}: {e}", logger_instance=logger)
            continue

        if payload.get("id") != request_id:
            rate_limited_log(
                f"Skipping frame for id {payload.get('id')!r} while waiting for {request_id}",
                level="debug",
                logger_instance=logger,
            )
            continue

        if payload.get("error") is not None:
            error = payload["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ProtocolError(
                f"Request {request_id} failed: {message}",
                request_id=request_id,
                error=error if isinstance(error, dict) else {"message": error},
            )

        result = payload.get("result")
        if result is None:
            raise ProtocolError(f"Response to request {request_id} has no result", request_id=request_id)
        return result

    raise ProtocolError(
        f"No response to request {request_id} within {max_frames} frames",
        request_id=request_id,
    )


def extract_auth_token(result: Any) -> str:
    """
    Get the auth token from an ``auth_wallet`` result.

    Raises:
        ProtocolError: If ``auth`` is missing, not a string, or empty
    """
    token = result.get("auth") if isinstance(result, dict) else None
    if not isinstance(token, str):
        raise ProtocolError(f"auth_wallet result has no auth token: {result!r}")
    try:
        return normalize_auth_token(token)
    except ValueError as e:
        raise ProtocolError(f"Malformed auth token: {e}") from e


def authenticate(session: AoriSession, max_frames: Optional[int] = None) -> AuthenticatedSession:
    """
    Run the full auth handshake.

    Sends ``auth_wallet``, waits for its token, sends ``check_auth`` with it
    and waits for that response too.

    Returns:
        The authenticated view of ``session``
    """
    auth_id = session.auth_wallet()
    token = extract_auth_token(wait_for_response(session.request_channel, auth_id, max_frames))

    check_id = session.check_auth(token)
    wait_for_response(session.request_channel, check_id, max_frames)
    logger.info(f"Authenticated {session.wallet_address}")
    return session.authenticated()
