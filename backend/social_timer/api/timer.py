from flask import Blueprint, Response, jsonify, request, current_app, stream_with_context
from social_timer import get_timer
from social_timer.services.timer import DeliveryFault
import json
import queue


timer_api = Blueprint('timer_api', __name__)


class QueueHandle:
    """Subscriber handle that buffers events for one SSE response.

    A viewer that stops reading fills the buffer; the next push then raises
    DeliveryFault and the broadcaster drops it.
    """

    def __init__(self, maxsize: int = 64):
        self._queue = queue.Queue(maxsize=maxsize)
        self.closed = False

    def __call__(self, event: str, payload: dict) -> None:
        if self.closed:
            raise DeliveryFault('stream closed')
        try:
            self._queue.put_nowait((event, payload))
        except queue.Full as exc:
            raise DeliveryFault('stream backlog full') from exc

    def get(self, timeout=None):
        return self._queue.get(timeout=timeout)

    def empty(self) -> bool:
        return self._queue.empty()

    def close(self) -> None:
        self.closed = True


def format_sse(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


def _reset_token():
    """Pull an optional idempotency token from the body or header."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError('Request body must be a JSON object')
    token = data.get('token', request.headers.get('Idempotency-Key'))
    if token is not None and not isinstance(token, str):
        raise ValueError('token must be a string')
    return token or None


@timer_api.route('', methods=['GET'])
def get_elapsed():
    return jsonify(get_timer().get_elapsed().to_dict()), 200


@timer_api.route('/reset', methods=['POST'])
def reset_timer():
    try:
        token = _reset_token()
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    timer = get_timer()
    epoch = timer.reset(token=token)
    current_app.logger.info(f"[api-reset] epoch={epoch} token={token}")
    return jsonify(timer.reading_for(epoch).to_dict()), 200


@timer_api.route('/stream', methods=['GET'])
def stream_timer():
    timer = get_timer()
    keepalive = float(current_app.config.get('SSE_KEEPALIVE_SEC', 15))

    def _events():
        handle = QueueHandle()
        subscriber = timer.subscribe(handle)
        if subscriber is None:
            return
        try:
            while True:
                # dropped by the broadcaster: finish the buffer, then end the
                # response so the client reconnects for a fresh snapshot
                if not subscriber.alive and handle.empty():
                    current_app.logger.info(f"[sse-end] subscriber={subscriber.id} dropped, closing stream")
                    return
                try:
                    event, payload = handle.get(timeout=keepalive)
                except queue.Empty:
                    if subscriber.alive:
                        yield ': keep-alive\n\n'
                    continue
                yield format_sse(event, payload)
        finally:
            handle.close()
            timer.unsubscribe(subscriber)

    return Response(
        stream_with_context(_events()),
        mimetype='text/event-stream',
        headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'},
    )
