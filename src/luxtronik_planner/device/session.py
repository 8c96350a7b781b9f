"""This module implements the session with the heat pump's remote-control websocket.

The Luxtronik controller offers no API for changing its settings. Its web
interface instead mirrors the on-device menu over a websocket speaking the
`Lux_WS` sub-protocol: the client logs in with the installer code, receives the
menu tree, opens screens with `GET` and operates the cursor with `MOVE` pulses
exactly as the rotary knob on the front panel would. This module wraps that
exchange in the `DeviceSession` class, an explicit state machine that refuses
protocol operations before login instead of sending commands the device would
silently ignore.
"""

from enum import Enum
from types import TracebackType
from typing import Callable, Optional, Type

import websocket

from luxtronik_planner.device.markup import read_value
from luxtronik_planner.device.navigation import NavigationTree
from luxtronik_planner.exceptions import (
    ConnectionFailure,
    NoResponse,
    NotLoggedIn,
    ProtocolViolation,
)
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

SUB_PROTOCOL = "Lux_WS"

# MOVE pulse codes of the remote control
MOVE_RIGHT = 0
MOVE_LEFT = 1
MOVE_SELECT = 2
MOVE_CONFIRM = 6


class SessionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    LOGGED_IN = "logged_in"
    NAVIGATING = "navigating"


class DeviceSession:
    """One websocket session with the heat pump.

    The session moves through `DISCONNECTED -> CONNECTED -> LOGGED_IN`, enters
    `NAVIGATING` whenever a screen is opened and returns to `LOGGED_IN` after a
    save. Closing it always returns to `DISCONNECTED` and drops the menu tree.

    It can be used as a context manager, which connects on enter and closes on exit.
    """

    def __init__(
        self,
        host_address: str,
        host_port: int,
        timeout: Optional[float] = None,
        connection_factory: Callable[[], websocket.WebSocket] = websocket.WebSocket,
    ) -> None:
        """Initializes the session without connecting.

        Args:
            host_address: IP address or hostname of the heat pump.
            host_port: Port of the websocket server, 8214 on Luxtronik 2.x.
            timeout: Seconds to wait for a frame before giving up; None waits forever.
            connection_factory: Creates the unconnected websocket, replaced in tests.
        """
        self._host_address = host_address
        self._host_port = host_port
        self._timeout = timeout
        self._connection_factory = connection_factory
        self._connection: Optional[websocket.WebSocket] = None
        self._navigation: Optional[NavigationTree] = None
        self.state = SessionState.DISCONNECTED

    @property
    def navigation(self) -> NavigationTree:
        if self._navigation is None:
            raise NotLoggedIn("No navigation available before login")
        return self._navigation

    def __enter__(self) -> "DeviceSession":
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.close()

    def connect(self) -> None:
        """Opens the websocket using the `Lux_WS` sub-protocol.

        Raises:
            ConnectionFailure: If the socket or the handshake fails.
        """
        url = f"ws://{self._host_address}:{self._host_port}"
        logger.info("Connecting to heat pump at %s", url)

        connection = self._connection_factory()
        try:
            connection.connect(
                url,
                origin=f"http://{self._host_address}",
                subprotocols=[SUB_PROTOCOL],
                timeout=self._timeout,
            )
        except (websocket.WebSocketException, OSError) as ex:
            raise ConnectionFailure(f"Cannot connect to {url}: {ex}") from ex

        self._connection = connection
        self.state = SessionState.CONNECTED

    def close(self) -> None:
        if self._connection is not None:
            try:
                self._connection.close()
            except (websocket.WebSocketException, OSError) as ex:
                logger.warning("Closing websocket failed: %s", ex)
        self._connection = None
        self._navigation = None
        self.state = SessionState.DISCONNECTED
        logger.debug("Session closed")

    def login(self, login_code: str) -> NavigationTree:
        """Logs in and parses the returned menu tree.

        Raises:
            ConnectionFailure: If the session is not connected.
            ProtocolViolation: If the response is not a navigation listing.
        """
        if self.state is not SessionState.CONNECTED:
            raise ConnectionFailure(f"Cannot log in while {self.state.value}")

        response = self.send_and_await(f"LOGIN;{login_code}")
        self._navigation = NavigationTree.parse(response)
        self.state = SessionState.LOGGED_IN
        logger.info("Logged in, received %d top-level menu items", len(self._navigation.items))

        return self._navigation

    def send(self, message: str) -> None:
        """Sends a message for which the device sends no reply.

        Raises:
            ConnectionFailure: If the socket is closed or unreachable.
            ProtocolViolation: If the websocket library rejects the frame.
        """
        connection = self._require_connection()
        logger.debug("Sending %s", message)
        try:
            connection.send(message)
        except (
            websocket.WebSocketConnectionClosedException,
            websocket.WebSocketTimeoutException,
            OSError,
        ) as ex:
            raise ConnectionFailure(f"Sending {message} failed: {ex}") from ex
        except websocket.WebSocketException as ex:
            raise ProtocolViolation(f"Sending {message} was rejected: {ex}") from ex

    def send_and_await(self, message: str) -> str:
        """Sends a message and blocks until the device answers with a text frame.

        Pings are answered with a pong and a close from the device is answered
        with a close by the websocket library; neither satisfies the wait.

        Raises:
            NoResponse: If the connection closes or times out before a text frame arrives.
            ProtocolViolation: If the device sends a malformed frame.
        """
        self.send(message)
        connection = self._require_connection()

        while True:
            try:
                opcode, frame = connection.recv_data_frame(control_frame=True)
            except websocket.WebSocketTimeoutException as ex:
                raise NoResponse(f"Timed out waiting for response to {message}") from ex
            except (websocket.WebSocketConnectionClosedException, OSError) as ex:
                raise NoResponse(f"No response received for {message}") from ex
            except websocket.WebSocketException as ex:
                raise ProtocolViolation(f"Invalid frame in response to {message}: {ex}") from ex

            if opcode == websocket.ABNF.OPCODE_TEXT:
                data = frame.data
                return data.decode("utf-8") if isinstance(data, bytes) else data
            if opcode == websocket.ABNF.OPCODE_CLOSE:
                raise NoResponse(f"Connection closed before response to {message}")
            # pings, pongs and binary frames carry no screen content

    def move_right(self) -> str:
        self._require_login()
        self.send_and_await(f"MOVE;{MOVE_RIGHT}")
        return self.send_and_await(f"MOVE;{MOVE_CONFIRM}")

    def move_left(self) -> str:
        self._require_login()
        self.send_and_await(f"MOVE;{MOVE_LEFT}")
        return self.send_and_await(f"MOVE;{MOVE_CONFIRM}")

    def click(self) -> str:
        self._require_login()
        self.send_and_await(f"MOVE;{MOVE_SELECT}")
        return self.send_and_await(f"MOVE;{MOVE_CONFIRM}")

    def navigate_to(self, item_path: str) -> str:
        """Opens the screen at a menu path and returns its content."""
        self._require_login()
        item_id = self.navigation.resolve(item_path)
        logger.debug("Navigating to %s (%s)", item_path, item_id)

        response = self.send_and_await(f"GET;{item_id}")
        self.state = SessionState.NAVIGATING

        return response

    def set_item(self, item_id: str, value: int) -> None:
        self._require_login()
        self.send(f"SET;set_{item_id};{value}")

    def save(self) -> str:
        self._require_login()
        response = self.send_and_await("SAVE;1")
        self.state = SessionState.LOGGED_IN

        return response

    def read_value(self, item_name: str, response_text: str) -> float:
        return read_value(item_name, response_text)

    def _require_connection(self) -> websocket.WebSocket:
        if self._connection is None:
            raise ConnectionFailure("Session is not connected")
        return self._connection

    def _require_login(self) -> None:
        if self.state not in (SessionState.LOGGED_IN, SessionState.NAVIGATING):
            raise NotLoggedIn(f"Cannot operate the menu while {self.state.value}")
