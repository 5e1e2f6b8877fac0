"""
Decoding of the JSON events a pengine server answers with
"""

from dataclasses import dataclass, field
from enum import Enum
import json
from typing import Any, Dict, List, Optional

from .exceptions import TransportError


class EventKind(Enum):
    """What an event means for the session and its query"""

    DATA = "data"
    NO_MORE_DATA = "no-more-data"
    ERROR = "error"
    CREATE = "create"
    DESTROY = "destroy"
    OTHER = "other"


_EVENT_KINDS = {
    "success": EventKind.DATA,
    "failure": EventKind.NO_MORE_DATA,
    "stop": EventKind.NO_MORE_DATA,
    "error": EventKind.ERROR,
    "died": EventKind.ERROR,
    "create": EventKind.CREATE,
    "destroy": EventKind.DESTROY,
}


@dataclass
class PengineEvent:
    """One decoded server event, possibly wrapping a nested one"""

    name: str
    kind: EventKind
    session_id: Optional[str] = None
    records: List[Dict[str, Any]] = field(default_factory=list)
    more: bool = False
    message: Optional[str] = None
    code: Optional[str] = None
    slave_limit: Optional[int] = None
    nested: Optional["PengineEvent"] = None


def decode_event(raw: str) -> PengineEvent:
    """Parse a raw server reply into a PengineEvent"""
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise TransportError(f"Server reply is not valid JSON: {raw!r:.200}") from e
    return event_from_json(payload)


def event_from_json(payload: Any) -> PengineEvent:
    if not isinstance(payload, dict) or not isinstance(payload.get("event"), str):
        raise TransportError(f"Server reply is not a pengine event: {payload!r:.200}")

    name = payload["event"]
    kind = _EVENT_KINDS.get(name, EventKind.OTHER)
    event = PengineEvent(name=name, kind=kind, session_id=payload.get("id"))

    if kind is EventKind.DATA:
        records = payload.get("data", [])
        if not isinstance(records, list) or not all(
            isinstance(record, dict) for record in records
        ):
            raise TransportError(f"Malformed success data: {records!r:.200}")
        event.records = records
        event.more = bool(payload.get("more", False))
    elif kind is EventKind.ERROR:
        event.message = _render_message(payload.get("data"), name)
        event.code = payload.get("code")
    elif kind is EventKind.CREATE:
        event.slave_limit = payload.get("slave_limit")
        if payload.get("answer") is not None:
            event.nested = event_from_json(payload["answer"])
    elif kind is EventKind.DESTROY:
        if isinstance(payload.get("data"), dict):
            event.nested = event_from_json(payload["data"])

    return event


def _render_message(data: Any, name: str) -> str:
    if data is None:
        return f"Pengine reported '{name}'"
    if isinstance(data, str):
        return data
    return json.dumps(data)
