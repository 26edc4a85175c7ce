from flask import current_app, request
from flask_socketio import emit

from mathbattle import socketio
from mathbattle.models import Participant
from mathbattle.services.battle import DeliveryHandle, Lobby

NAMESPACE = '/ws'


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _lobby() -> Lobby:
    return current_app.extensions['lobby']


def _emitter_for(namespace: str):
    def _emit(event, payload, sid):
        # socketio.emit since this may run from a background task
        socketio.emit(event, payload, to=sid, namespace=namespace)
    return _emit


def handle_connect(auth=None):
    emit('connected', {'id': _get_sid()})


def handle_disconnect(reason=None):
    current_app.logger.info(f"[socket-disconnect] sid={_get_sid()} reason={reason}")
    _lobby().disconnect(_get_sid())


def handle_join_queue(data):
    name = ((data or {}).get('name') or '').strip()
    if not name:
        emit('error', {'message': 'name is required'})
        return
    sid = _get_sid()
    handle = DeliveryHandle(_emitter_for(request.namespace), sid)
    _lobby().join_queue(Participant(id=sid, name=name, handle=handle))


def handle_leave_queue(data=None):
    if _lobby().leave_queue(_get_sid()):
        emit('left-queue', {})


def handle_set_branch(data):
    session_id = (data or {}).get('sessionId')
    branch = (data or {}).get('branch')
    if not session_id or not branch:
        current_app.logger.debug(f"[intent-ignored] sid={_get_sid()} event=set-branch")
        return
    _lobby().set_branch(_get_sid(), session_id, branch)


def handle_play_card(data):
    session_id = (data or {}).get('sessionId')
    card_id = (data or {}).get('cardId')
    if not session_id or not card_id:
        current_app.logger.debug(f"[intent-ignored] sid={_get_sid()} event=play-card")
        return
    _lobby().play_card(_get_sid(), session_id, card_id)


def handle_chat(data):
    session_id = (data or {}).get('sessionId')
    message = (data or {}).get('message')
    if not session_id or not isinstance(message, str) or not message.strip():
        return
    _lobby().chat(_get_sid(), session_id, message.strip())


def handle_ping(data):
    emit('pong', data or {})


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'join-queue': handle_join_queue,
    'leave-queue': handle_leave_queue,
    'set-branch': handle_set_branch,
    'play-card': handle_play_card,
    'chat': handle_chat,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace=NAMESPACE)

    if testing:
        for event, handler in HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
