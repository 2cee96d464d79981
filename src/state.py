"""
Connection State Machine
========================
Owns the hub authentication state and the hub client handle.

States:
    NOT_AUTHENTICATED -> AUTHENTICATION_INITIATED -> AUTHENTICATED
    any state -> NOT_AUTHENTICATED (setup failure, disconnect, destroy)

The machine is the only component that creates or destroys the hub client.
A setup attempt runs on a poll tick when the network is reachable and the
state is NOT_AUTHENTICATED. Its outcome drives the reconnect backoff.

Classes:
    - StateTransition: Record passed to state change listeners
    - ConnectionStateMachine: State owner and client lifecycle

Module: state
Version: 1.0.0
"""

import json
import time

from core.constants import DEBUG_ENABLED
from core.errors import SetupError
from core.types import ConnectionState, ConnectionStatusReason
from utils.timing import Timer


class StateTransition:
    """
    A single state change.

    Attributes:
        from_state: ConnectionState before the change
        to_state: ConnectionState after the change
        reason: Optional description (status reason, setup outcome)
        timestamp: time.monotonic() at the change
    """

    def __init__(self, from_state, to_state, reason=None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason
        self.timestamp = time.monotonic()

    def __repr__(self):
        return "StateTransition({} -> {}, reason={})".format(
            ConnectionState.to_string(self.from_state),
            ConnectionState.to_string(self.to_state),
            self.reason,
        )


class ConnectionStateMachine:
    """
    Hub connection lifecycle.

    Usage:
        >>> machine = ConnectionStateMachine(provisioner, backoff, session)
        >>> machine.set_handlers(twin.on_desired_properties_received, methods.on_method_invoked)
        >>> machine.on_tick(network_reachable=True)   # creates and connects a client
        >>> machine.client.pump()                      # delivers the status callback

    Args:
        provisioner: Object with create_client() returning an unconnected HubClient
        backoff: ReconnectBackoff driven by setup outcomes
        session: AgentSession (device metadata and statistics)
    """

    def __init__(self, provisioner, backoff, session):
        self.provisioner = provisioner
        self.backoff = backoff
        self.session = session

        self._state = ConnectionState.NOT_AUTHENTICATED
        self._client = None
        self._listeners = []
        self._twin_callback = None
        self._method_callback = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def get_current_state(self):
        return self._state

    def is_authenticated(self):
        return self._state == ConnectionState.AUTHENTICATED

    @property
    def client(self):
        return self._client

    def on_state_change(self, callback):
        """
        Register a listener called with a StateTransition on every change.

        Registering the same callback twice has no effect.
        """
        if callback not in self._listeners:
            self._listeners.append(callback)

    def _transition(self, to_state, reason=None):
        from_state = self._state
        if from_state == to_state:
            return False

        self._state = to_state
        transition = StateTransition(from_state, to_state, reason)
        print("[STATE] {} -> {}{}".format(
            ConnectionState.to_string(from_state),
            ConnectionState.to_string(to_state),
            " [{}]".format(reason) if reason else "",
        ))

        for callback in self._listeners:
            try:
                callback(transition)
            except Exception as e:
                print("[STATE] [ERROR] State change listener failed: {}".format(e))
        return True

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    def set_handlers(self, twin_callback, method_callback):
        """Set the twin and direct method handlers registered on every new client."""
        self._twin_callback = twin_callback
        self._method_callback = method_callback

    def on_tick(self, network_reachable):
        """
        Advance the machine for one poll tick.

        Args:
            network_reachable: Result of the reachability check for this tick

        Returns:
            bool: True if a setup attempt was made
        """
        if network_reachable and self._state == ConnectionState.NOT_AUTHENTICATED:
            self.set_up_client()
            return True
        return False

    def set_up_client(self):
        """
        Destroy any existing client, then create and connect a new one.

        On success the state becomes AUTHENTICATION_INITIATED and the backoff
        resets; on SetupError the backoff advances and the state stays
        NOT_AUTHENTICATED.

        Returns:
            bool: True if the client was created and connected
        """
        self.destroy_client()

        client = None
        timer = Timer("setup", silent=True)
        try:
            with timer:
                client = self.provisioner.create_client()
                client.connect()
        except SetupError as e:
            if client is not None:
                client.destroy()
            self.session.stats.record_setup(timer.elapsed_ms(), succeeded=False)
            period = self.backoff.on_failure()
            print("[STATE] [ERROR] Hub client setup failed: {}".format(e))
            print("[STATE] Retrying in {}s".format(period))
            return False

        self._client = client
        self.session.stats.record_setup(timer.elapsed_ms(), succeeded=True)
        self.backoff.on_success()

        client.set_connection_status_callback(self.on_connection_status_changed)
        client.set_twin_callback(self._twin_callback)
        client.set_method_callback(self._method_callback)

        self._transition(ConnectionState.AUTHENTICATION_INITIATED, reason="client connected")
        return True

    def destroy_client(self):
        """Release the current client handle, if any, and drop to NOT_AUTHENTICATED."""
        if self._client is None:
            return
        client = self._client
        self._client = None
        client.destroy()
        if DEBUG_ENABLED:
            print("[STATE] [DEBUG] Hub client destroyed")
        self._transition(ConnectionState.NOT_AUTHENTICATED, reason="client destroyed")

    def on_connection_status_changed(self, authenticated, reason):
        """
        Connection status callback from the hub client.

        Args:
            authenticated: True if the client is authenticated with the hub
            reason: ConnectionStatusReason value
        """
        print("[STATE] Hub connection status: {}".format(ConnectionStatusReason.to_string(reason)))

        if not authenticated:
            if self._state == ConnectionState.AUTHENTICATED:
                self.session.stats.disconnects += 1
            self._transition(ConnectionState.NOT_AUTHENTICATED, reason=reason)
            return

        self._transition(ConnectionState.AUTHENTICATED, reason=reason)
        self.session.stats.authentications += 1
        self.report_state(json.dumps(self.session.device_metadata(), separators=(",", ":")))

    # ------------------------------------------------------------------
    # Outbound routing
    # ------------------------------------------------------------------

    def report_state(self, json_text):
        """
        Queue a reported-properties update on the current client.

        Returns:
            bool: False if there is no client (the update is dropped)
        """
        if self._client is None:
            print("[STATE] [WARNING] No hub client; dropping reported state {}".format(json_text))
            return False
        self._client.report_state(json_text)
        self.session.stats.reported_states += 1
        if DEBUG_ENABLED:
            print("[STATE] [DEBUG] Reported state queued: {}".format(json_text))
        return True

    def send_event(self, json_text):
        """
        Queue a telemetry message on the current client.

        Returns:
            bool: False if there is no client (the message is dropped)
        """
        if self._client is None:
            print("[STATE] [WARNING] No hub client; dropping message {}".format(json_text))
            return False
        self._client.send_event(json_text)
        return True

    def __repr__(self):
        return "ConnectionStateMachine(state={})".format(ConnectionState.to_string(self._state))
