"""
Core Types
==========
State, connection and exit code definitions for the HubLink device agent.

Values are plain class constants so they can be compared, logged and stored
in the dict-based configuration without conversion.

Module: core.types
Version: 1.0.0
"""


class ConnectionState:
    """
    Authentication state of the client with respect to the IoT hub.

    Transitions:
        NOT_AUTHENTICATED -> AUTHENTICATION_INITIATED -> AUTHENTICATED
        any state -> NOT_AUTHENTICATED (failure or disconnect)
    """

    NOT_AUTHENTICATED = 0
    AUTHENTICATION_INITIATED = 1
    AUTHENTICATED = 2

    _NAMES = {
        NOT_AUTHENTICATED: "NOT_AUTHENTICATED",
        AUTHENTICATION_INITIATED: "AUTHENTICATION_INITIATED",
        AUTHENTICATED: "AUTHENTICATED",
    }

    @classmethod
    def to_string(cls, state):
        return cls._NAMES.get(state, "UNKNOWN")


class ConnectionType:
    """How the device obtains its hub connection."""

    NOT_DEFINED = "NotDefined"
    DPS = "DPS"
    DIRECT = "Direct"

    ALL = (DPS, DIRECT)


class ConnectionStatusReason:
    """Reasons reported alongside a connection status change."""

    CONNECTION_OK = "CONNECTION_OK"
    EXPIRED_SAS_TOKEN = "EXPIRED_SAS_TOKEN"
    DEVICE_DISABLED = "DEVICE_DISABLED"
    BAD_CREDENTIAL = "BAD_CREDENTIAL"
    RETRY_EXPIRED = "RETRY_EXPIRED"
    NO_NETWORK = "NO_NETWORK"
    COMMUNICATION_ERROR = "COMMUNICATION_ERROR"
    NO_PING_RESPONSE = "NO_PING_RESPONSE"
    CLIENT_CLOSED = "CLIENT_CLOSED"

    ALL = (
        CONNECTION_OK,
        EXPIRED_SAS_TOKEN,
        DEVICE_DISABLED,
        BAD_CREDENTIAL,
        RETRY_EXPIRED,
        NO_NETWORK,
        COMMUNICATION_ERROR,
        NO_PING_RESPONSE,
        CLIENT_CLOSED,
    )

    @classmethod
    def to_string(cls, reason):
        if reason in cls.ALL:
            return "IOTHUB_CLIENT_CONNECTION_" + reason
        return "unknown reason"


class HubEventKind:
    """Tags for events delivered by the hub client on pump()."""

    CONNECTION_STATUS = "connection_status"
    TWIN_UPDATE = "twin_update"
    METHOD_INVOKED = "method_invoked"
    SEND_CONFIRMATION = "send_confirmation"


class ExitCode:
    """
    Process exit codes.

    Zero is graceful termination. Every fatal category has its own small
    positive code so the supervisor can tell failures apart.
    """

    SUCCESS = 0

    MAIN_EVENT_LOOP_FAIL = 2

    INIT_EVENT_LOOP = 5
    INIT_MESSAGE_BUTTON = 6
    INIT_TWIN_STATUS_LED = 8
    INIT_BUTTON_POLL_TIMER = 9
    INIT_AZURE_TIMER = 10

    IS_BUTTON_PRESSED_GET_VALUE = 11

    VALIDATE_CONNECTION_TYPE = 12
    VALIDATE_SCOPE_ID = 13
    VALIDATE_IOT_HUB_HOSTNAME = 14
    VALIDATE_DEVICE_ID = 15

    INTERFACE_CONNECTION_STATUS_FAILED = 16

    INIT_SENSOR = 17
    INIT_HUB_SDK = 18
    LOAD_CONFIG = 19
    VALIDATE_CERTIFICATE = 20

    INIT_TWIN_RLED = 21
    INIT_TWIN_GLED = 22
    INIT_TWIN_BLED = 23
