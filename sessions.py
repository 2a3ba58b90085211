# sessions.py
import uuid

from world import Player, World


class SessionRegistry:
    """Maps reconnection tokens to players and live connections to tokens.

    Player records live in ``World.players``; the registry only tracks which
    connection currently speaks for which token. Player records are never
    removed here, only marked disconnected.
    """

    def __init__(self, world: World):
        self.world = world
        # connection -> token
        self.bindings: dict[object, str] = {}

    def create_or_reconnect(self, connection, token, name, color) -> tuple[Player, bool]:
        """Register or reactivate the player for ``token`` and bind ``connection``.

        Returns ``(player, reconnected)``.
        """
        if not isinstance(token, str) or not token:
            token = str(uuid.uuid4())

        previous = self.bindings.get(connection)
        if previous is not None and previous != token:
            self._release(connection, previous)

        player = self.world.players.get(token)
        reconnected = player is not None
        if reconnected:
            player.connected = True
        else:
            x, y = self.world.random_position()
            player = self.world.add_player(Player(token, name, color, x, y))

        self.bindings[connection] = token
        return player, reconnected

    def player_for(self, connection) -> Player | None:
        token = self.bindings.get(connection)
        if token is None:
            return None
        # the record disappears on reset even if the connection stays open
        return self.world.players.get(token)

    def disconnect(self, connection) -> Player | None:
        """Unbind ``connection`` and return the player it was speaking for."""
        token = self.bindings.pop(connection, None)
        if token is None:
            return None
        player = self.world.players.get(token)
        if player is not None and not self._is_bound(token):
            player.connected = False
        return player

    def _release(self, connection, token):
        del self.bindings[connection]
        player = self.world.players.get(token)
        if player is not None and not self._is_bound(token):
            player.connected = False

    def _is_bound(self, token) -> bool:
        return token in self.bindings.values()
