class SocketIOTransport:
    """Delivers engine events over Socket.IO.

    Player ids are Socket.IO session ids, so a player can be addressed
    directly through the room every session is implicitly a member of.
    """

    def __init__(self, socketio, namespace: str = '/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def emit(self, event: str, payload: dict, to: str) -> None:
        self.socketio.emit(event, payload, to=to, namespace=self.namespace)

    def enter(self, member_id: str, room_id: str) -> None:
        self.socketio.server.enter_room(member_id, room_id, namespace=self.namespace)

    def leave(self, member_id: str, room_id: str) -> None:
        self.socketio.server.leave_room(member_id, room_id, namespace=self.namespace)
