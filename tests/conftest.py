from collections import deque
from types import SimpleNamespace
from typing import List, Optional

import pytest
import websocket

from luxtronik_planner.device.session import DeviceSession

LOGIN_CODE = "999999"

# Menu tree as returned by a Luxtronik 2.1 controller running firmware V3.88
NAVIGATION_RESPONSE = (
    "<Navigation id='0x45cd88'>"
    "<item id='0x45e068'><name>Informatie</name>"
    "<item id='0x45df90'><name>Temperaturen</name></item>"
    "<item id='0x455968'><name>Ingangen</name></item>"
    "<item id='0x455760'><name>Uitgangen</name></item>"
    "<item id='0x45bf10'><name>Aflooptijden</name></item>"
    "<item id='0x456f08'><name>Bedrijfsuren</name></item>"
    "<item id='0x4643a8'><name>Storingsbuffer</name></item>"
    "<item id='0x3ddfa8'><name>Afschakelingen</name></item>"
    "<item id='0x45d840'><name>Installatiestatus</name></item>"
    "<item id='0x460cb8'><name>Energie</name></item>"
    "<item id='0x4586a8'><name>GBS</name></item>"
    "</item>"
    "<item id='0x450798'><name>Instelling</name>"
    "<item id='0x460bd0'><name>Bedrijfsmode</name></item>"
    "<item id='0x461170'><name>Temperaturen</name></item>"
    "<item id='0x462988'><name>Systeeminstelling</name></item>"
    "</item>"
    "<item id='0x3dc420'><name>Klokprogramma</name><readOnly>true</readOnly>"
    "<item id='0x453560'><name>Verwarmen</name><readOnly>true</readOnly>"
    "<item id='0x45e118'><name>Week</name></item>"
    "<item id='0x45df00'><name>5+2</name></item>"
    "<item id='0x45c200'><name>Dagen (Ma, Di,...)</name></item>"
    "</item>"
    "<item id='0x43e8e8'><name>Warmwater</name><readOnly>true</readOnly>"
    "<item id='0x4642a8'><name>Week</name></item>"
    "<item id='0x463940'><name>5+2</name></item>"
    "<item id='0x463b68'><name>Dagen (Ma, Di,...)</name></item>"
    "</item>"
    "<item id='0x3dcc00'><name>Zwembad</name><readOnly>true</readOnly>"
    "<item id='0x455580'><name>Week</name></item>"
    "<item id='0x463f78'><name>5+2</name></item>"
    "<item id='0x462690'><name>Dagen (Ma, Di,...)</name></item>"
    "</item>"
    "</item>"
    "<item id='0x45c7b0'><name>Toegang: Gebruiker</name></item>"
    "</Navigation>"
)

TEMPERATURES_ID = "0x45df90"
INPUTS_ID = "0x455968"
SYSTEM_SETTINGS_ID = "0x462988"
SETPOINT_SETTINGS_ID = "0x461170"
HEATING_WEEK_ID = "0x45e118"
TAP_WATER_WEEK_ID = "0x4642a8"

TEMPERATURES_RESPONSE = (
    "<Content>"
    "<item id='0x4816ac'><name>Aanvoer</name><value>22.3°C</value></item>"
    "<item id='0x44fdcc'><name>Retour</name><value>22.0°C</value></item>"
    "<item id='0x4807dc'><name>Retour berekend</name><value>23.0°C</value></item>"
    "<item id='0x45e1bc'><name>Heetgas</name><value>38.0°C</value></item>"
    "<item id='0x448894'><name>Buitentemperatuur</name><value>-1.6°C</value></item>"
    "<item id='0x48047c'><name>Gemiddelde temp.</name><value>13.1°C</value></item>"
    "<item id='0x457724'><name>Tapwater gemeten</name><value>54.2°C</value></item>"
    "<item id='0x45e97c'><name>Tapwater ingesteld</name><value>{setpoint}°C</value></item>"
    "<item id='0x45a41c'><name>Bron-in</name><value>10.5°C</value></item>"
    "<item id='0x480204'><name>Bron-uit</name><value>10.3°C</value></item>"
    "<item id='0x4803cc'><name>Menggroep2-aanvoer</name><value>---</value></item>"
    "<item id='0x45a514'><name>Zonnecollector</name><value>5.0°C</value></item>"
    "<item id='0x43e60c'><name>Oververhitting</name><value>4.8 K</value></item>"
    "<name>Temperaturen</name>"
    "</Content>"
)

INPUTS_RESPONSE = (
    "<Content>"
    "<item id='0x4e7944'><name>ASD</name><value>Aan</value></item>"
    "<item id='0x4ffbfc'><name>EVU</name><value>Aan</value></item>"
    "<item id='0x4ef3b4'><name>HD</name><value>Uit</value></item>"
    "<item id='0x4dac64'><name>MOT</name><value>Aan</value></item>"
    "<item id='0x4fa864'><name>Analoog-In 21</name><value>0.00 V</value></item>"
    "<item id='0x4e6a3c'><name>HD</name><value>8.10 bar</value></item>"
    "<item id='0x4ca47c'><name>ND</name><value>8.38 bar</value></item>"
    "<item id='0x4e8004'><name>Debiet</name><value>1200 l/h</value></item>"
    "<name>Ingangen</name>"
    "</Content>"
)

TAP_WATER_SLOT_IDS = ["0xa57344", "0xa53c8c", "0xa47ee4", "0xa6630c", "0xa68d74"]
HEATING_SLOT_IDS = ["0xb17344", "0xb13c8c", "0xb17ee4", "0xb1630c", "0xb18d74"]


def timer_response(slot_ids: List[str], raw_values: Optional[List[int]] = None) -> str:
    raw_values = raw_values or [600, 11796480, 0, 0, 0]
    items = "".join(
        f"<item id='{slot_id}'><value>--</value><name>{index})</name>"
        f"<type>timer</type><raw>{raw}</raw></item>"
        for index, (slot_id, raw) in enumerate(zip(slot_ids, raw_values), start=1)
    )
    return f"<Content><item><name>Maandag - Zondag</name>{items}</item></Content>"


class FakeHeatPump:
    """Answers remote-control messages the way the controller does."""

    def __init__(self, setpoint: float = 57.0) -> None:
        self.setpoint = setpoint
        self.sent: List[str] = []
        self.screens = {
            TEMPERATURES_ID: lambda: TEMPERATURES_RESPONSE.format(setpoint=self.setpoint),
            INPUTS_ID: lambda: INPUTS_RESPONSE,
            TAP_WATER_WEEK_ID: lambda: timer_response(TAP_WATER_SLOT_IDS),
            HEATING_WEEK_ID: lambda: timer_response(HEATING_SLOT_IDS),
        }

    def respond(self, message: str) -> Optional[str]:
        command, _, argument = message.partition(";")
        if command == "LOGIN":
            return NAVIGATION_RESPONSE
        if command == "GET":
            screen = self.screens.get(argument)
            return screen() if screen else f"<Content><name>{argument}</name></Content>"
        if command in ("MOVE", "SAVE"):
            return "<Content></Content>"
        # SET is not acknowledged
        return None

    def sent_starting_with(self, prefix: str) -> List[str]:
        return [message for message in self.sent if message.startswith(prefix)]


class FakeConnection:
    """Stands in for `websocket.WebSocket`, scripted by a `FakeHeatPump`."""

    def __init__(self, heat_pump: FakeHeatPump) -> None:
        self.heat_pump = heat_pump
        self.frames: deque = deque()
        self.url: Optional[str] = None
        self.options: dict = {}
        self.closed = False

    def connect(self, url: str, **options) -> None:
        self.url = url
        self.options = options

    def send(self, payload: str) -> None:
        self.heat_pump.sent.append(payload)
        reply = self.heat_pump.respond(payload)
        if reply is not None:
            self.push(websocket.ABNF.OPCODE_TEXT, reply.encode("utf-8"))

    def push(self, opcode: int, data: bytes = b"") -> None:
        self.frames.append((opcode, SimpleNamespace(data=data)))

    def recv_data_frame(self, control_frame: bool = False):
        if not self.frames:
            raise websocket.WebSocketConnectionClosedException("Connection is already closed.")
        return self.frames.popleft()

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def heat_pump() -> FakeHeatPump:
    return FakeHeatPump()


@pytest.fixture
def connection(heat_pump: FakeHeatPump) -> FakeConnection:
    return FakeConnection(heat_pump)


@pytest.fixture
def session(connection: FakeConnection) -> DeviceSession:
    return DeviceSession("192.168.1.10", 8214, timeout=5, connection_factory=lambda: connection)


@pytest.fixture
def logged_in_session(session: DeviceSession) -> DeviceSession:
    session.connect()
    session.login(LOGIN_CODE)
    return session
