from flask_socketio import emit
from flask import request, current_app
from social_timer import socketio, get_timer
from social_timer.services.timer import DeliveryFault
from typing import Dict, Tuple, Any

NAMESPACE = '/ws'


class SocketHandle:
    """Subscriber handle that pushes timer events to one Socket.IO client."""

    def __init__(self, sid: str, namespace: str = NAMESPACE):
        self.sid = sid
        self.namespace = namespace
        self.closed = False

    def __call__(self, event: str, payload: dict) -> None:
        if self.closed:
            raise DeliveryFault(f"socket {self.sid} disconnected")
        # socketio.emit works outside a request context (HTTP resets, CLI)
        socketio.emit(event, payload, to=self.sid, namespace=self.namespace)

    def close(self) -> None:
        self.closed = True


_sid_to_subscriber: Dict[str, Tuple[SocketHandle, Any]] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    sid = _get_sid()
    handle = SocketHandle(sid)
    # first event to this client is the timer_snapshot
    subscriber = get_timer().subscribe(handle)
    if subscriber is None:
        current_app.logger.warning(f"[ws-connect] sid={sid} snapshot delivery failed")
        return
    _sid_to_subscriber[sid] = (handle, subscriber)


def handle_disconnect(reason=None):
    entry = _sid_to_subscriber.pop(_get_sid(), None)
    if not entry:
        return
    handle, subscriber = entry
    handle.close()
    get_timer().unsubscribe(subscriber)


def handle_reset(data=None):
    token = data.get('token') if isinstance(data, dict) else None
    if token is not None and not isinstance(token, str):
        emit('error', {'message': 'token must be a string'})
        return None
    timer = get_timer()
    epoch = timer.reset(token=token or None)
    current_app.logger.info(f"[ws-reset] sid={_get_sid()} epoch={epoch}")
    # returned dict is the ack payload
    return timer.reading_for(epoch).to_dict()


def handle_get_elapsed(data=None):
    payload = get_timer().get_elapsed().to_dict()
    emit('timer_elapsed', payload)
    return payload


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('reset', handle_reset, namespace=NAMESPACE)
    socketio.on_event('get_elapsed', handle_get_elapsed, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
