# server.py
import asyncio
import logging
import time
import uuid

import websockets
from websockets.exceptions import ConnectionClosed

import config
import controller
import protocol
import simulation
from logs import configure_logging, log
from sessions import SessionRegistry
from world import World


class GameServer:
    def __init__(self, world: World | None = None):
        self.world = world or World()
        self.sessions = SessionRegistry(self.world)
        # websocket -> short client id used in logs
        self.clients: dict[object, str] = {}
        self.tasks: list[asyncio.Task] = []
        self.running = False
        self.tick_count = 0
        # in-flight fire-and-forget sends, kept so they are not collected early
        self._pending_sends: set[asyncio.Task] = set()
        # websocket -> latest gameState send task
        self._snapshot_sends: dict[object, asyncio.Task] = {}

    async def send(self, ws, msg: dict):
        """Send one message to one client."""
        await ws.send(protocol.encode(msg))

    def broadcast(self, msg: dict):
        """Fan a message out to every open connection.

        The frame is encoded once and each send runs as its own task, so a
        slow or broken client neither blocks the loop nor stops delivery to
        the others.
        """
        if not self.clients:
            return
        frame = protocol.encode(msg)
        for ws, client_id in list(self.clients.items()):
            self.send_later(ws, frame, client_id)

    def send_later(self, ws, frame: str, client_id: str | None = None):
        """Schedule a send without waiting for it; failures are only logged."""
        task = asyncio.create_task(ws.send(frame))
        self._pending_sends.add(task)
        task.add_done_callback(lambda t: self._send_done(t, client_id))
        return task

    def _send_done(self, task: asyncio.Task, client_id: str):
        self._pending_sends.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        if isinstance(exc, ConnectionClosed):
            log(f"Send skipped, connection closed: {exc}", client_id=client_id, level=logging.DEBUG)
        else:
            log(f"Send failed: {exc!r}", client_id=client_id, level=logging.WARNING)

    async def drain(self):
        """Wait for every in-flight broadcast send to finish."""
        while self._pending_sends:
            await asyncio.gather(*list(self._pending_sends), return_exceptions=True)

    def broadcast_all(self, messages):
        for msg in messages:
            if msg is not None:
                self.broadcast(msg)

    def broadcast_state(self):
        """Send the snapshot, skipping clients still busy with the previous one."""
        if not self.clients:
            return
        frame = protocol.encode(protocol.game_state(self.world))
        for ws, client_id in list(self.clients.items()):
            previous = self._snapshot_sends.get(ws)
            if previous is not None and not previous.done():
                continue
            self._snapshot_sends[ws] = self.send_later(ws, frame, client_id)

    def run_tick(self):
        self.tick_count += 1
        self.broadcast_all(simulation.tick(self.world))
        # Log every Nth tick to avoid spam
        if self.tick_count % (config.TICK_RATE * 10) == 0:
            log(
                f"Tick {self.tick_count}: {len(self.world.connected_players())} connected, "
                f"{len(self.world.coins)} coins",
                level=logging.DEBUG,
            )

    def spawn_coin(self):
        self.broadcast_all([controller.spawn_coin(self.world)])

    def update_speed_limit(self):
        self.broadcast_all([controller.update_speed_limit(self.world)])

    async def every(self, period: float, work, name: str):
        """Run ``work()`` every ``period`` seconds until cancelled."""
        last_time = time.monotonic()
        while True:
            now = time.monotonic()
            elapsed = now - last_time
            if elapsed < period:
                await asyncio.sleep(period - elapsed)
                continue
            last_time = now
            try:
                work()
            except Exception:
                log(f"{name} failed", level=logging.ERROR, exc_info=True)

    def start(self):
        """Start the tick, broadcast, spawner and speed-limit loops."""
        if self.running:
            return
        self.running = True
        loops = [
            (config.DT, self.run_tick, "tick"),
            (1.0 / config.BROADCAST_RATE, self.broadcast_state, "broadcast"),
            (config.COIN_SPAWN_PERIOD, self.spawn_coin, "coin spawner"),
            (config.SPEED_LIMIT_PERIOD, self.update_speed_limit, "speed limit"),
        ]
        for period, work, name in loops:
            self.tasks.append(asyncio.create_task(self.every(period, work, name)))
        log("Game loops started")

    async def stop(self):
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()
        self.running = False
        await self.drain()
        log("Game loops stopped")

    def handle_message(self, ws, raw, client_id: str | None = None):
        """Apply one inbound frame. Malformed frames are logged and dropped."""
        try:
            msg = protocol.parse_message(raw)
            mtype = msg["type"]

            if mtype == protocol.CREATE:
                self.on_create(ws, msg, client_id)
            elif mtype == protocol.MOVE:
                self.on_move(ws, msg)
            elif mtype == protocol.GET_PAST_COINS:
                self.send_later(ws, protocol.encode(protocol.past_coins(self.world)), client_id)
            elif mtype == protocol.RESET:
                log("Reset requested", client_id=client_id)
                self.broadcast(controller.reset(self.world))
            elif mtype == protocol.TOGGLE_HARD_MODE:
                log("Hard mode toggle requested", client_id=client_id)
                self.broadcast(controller.toggle_hard_mode(self.world))
            else:
                log(f"Ignoring unknown message type: {mtype}", client_id=client_id, level=logging.DEBUG)
        except protocol.ProtocolError as e:
            log(f"Dropped malformed message: {e}", client_id=client_id, level=logging.WARNING)

    def on_create(self, ws, msg: dict, client_id: str | None = None):
        secret, name, color = protocol.read_create(msg)
        player, reconnected = self.sessions.create_or_reconnect(ws, secret, name, color)
        if reconnected:
            log(f"Player reconnected: {player.name} (score={player.score})", client_id=client_id)
        else:
            log(f"Player joined: {player.name}", client_id=client_id)
        self.broadcast(protocol.notification(f"{player.name} has joined!", "green"))

    def on_move(self, ws, msg: dict):
        angle, velocity = protocol.read_move(msg)
        player = self.sessions.player_for(ws)
        if player is None or not player.connected:
            return
        simulation.apply_intent(player, angle, velocity)

    async def handle_client(self, websocket):
        """Handle one client connection."""
        client_id = str(uuid.uuid4())[:8]
        self.clients[websocket] = client_id
        log("Client connected", client_id=client_id)
        await self.send(websocket, protocol.server_info())
        async for raw in websocket:
            self.handle_message(websocket, raw, client_id)

    def on_disconnect(self, websocket):
        """Forget the connection; the player record stays for reconnects."""
        client_id = self.clients.pop(websocket, None)
        self._snapshot_sends.pop(websocket, None)
        player = self.sessions.disconnect(websocket)
        log("Client disconnected", client_id=client_id)
        if player is not None and not player.connected:
            log(f"{player.name} disconnected.", client_id=client_id)
            self.broadcast(protocol.notification(f"{player.name} has left.", "red"))

    async def handler(self, websocket):
        try:
            await self.handle_client(websocket)
        except ConnectionClosed:
            pass
        finally:
            self.on_disconnect(websocket)

    async def listen(self, host: str = config.HOST, port: int = config.PORT):
        """Start the game loops and a websocket server; returns the server."""
        self.start()
        ws_server = await websockets.serve(self.handler, host, port)
        log(f"Listening on ws://{host}:{port}")
        return ws_server


async def main():
    configure_logging(config.LOG_LEVEL)
    server = GameServer()
    ws_server = await server.listen(config.HOST, config.PORT)
    try:
        await asyncio.Future()  # run forever
    finally:
        ws_server.close()
        await ws_server.wait_closed()
        await server.stop()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        log("Server stopped")


if __name__ == "__main__":
    run()
