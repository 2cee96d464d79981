"""
Hub Client Adapter
==================
Uniform capability the agent core uses to talk to the IoT hub.

The core only sees HubClient: connect/disconnect/destroy, pump, send_event,
report_state and three callback registrations. Everything the hub delivers is
turned into a tagged HubEvent and consumed by a single dispatch function on
the thread that calls pump(), so the core is never re-entered from SDK worker
threads.

Classes:
    - HubEvent: Tagged event delivered by pump()
    - HubClient: Abstract adapter (callback registration and dispatch)
    - AzureHubClient: Adapter over azure-iot-device IoTHubDeviceClient

Module: hub
Version: 1.0.0
"""

import abc
import json
import queue
import traceback

from azure.iot.device import Message, MethodResponse

from core.constants import DEBUG_ENABLED
from core.errors import HubClientError, SetupError
from core.types import ConnectionStatusReason, HubEventKind


class HubEvent:
    """
    Event delivered to the core by HubClient.pump().

    Attributes:
        kind: HubEventKind tag
        authenticated: CONNECTION_STATUS only
        reason: CONNECTION_STATUS only, a ConnectionStatusReason value
        payload: TWIN_UPDATE and METHOD_INVOKED, raw bytes
        method_name: METHOD_INVOKED only
        request: METHOD_INVOKED only, adapter-specific request handle
        succeeded: SEND_CONFIRMATION only
        context: SEND_CONFIRMATION only, description of what was sent
    """

    def __init__(self, kind, **fields):
        self.kind = kind
        self.authenticated = fields.get("authenticated")
        self.reason = fields.get("reason")
        self.payload = fields.get("payload")
        self.method_name = fields.get("method_name")
        self.request = fields.get("request")
        self.succeeded = fields.get("succeeded")
        self.context = fields.get("context")

    @classmethod
    def connection_status(cls, authenticated, reason):
        return cls(HubEventKind.CONNECTION_STATUS, authenticated=authenticated, reason=reason)

    @classmethod
    def twin_update(cls, payload):
        return cls(HubEventKind.TWIN_UPDATE, payload=payload)

    @classmethod
    def method_invoked(cls, method_name, payload, request=None):
        return cls(HubEventKind.METHOD_INVOKED, method_name=method_name, payload=payload, request=request)

    @classmethod
    def send_confirmation(cls, succeeded, context=None):
        return cls(HubEventKind.SEND_CONFIRMATION, succeeded=succeeded, context=context)

    def __repr__(self):
        return "HubEvent(kind={})".format(self.kind)


class HubClient(abc.ABC):
    """
    Abstract hub client.

    Subclasses implement the transport; this base owns the registered
    callbacks and the single dispatch point for HubEvents.

    Callbacks:
        connection status: callback(authenticated, reason)
        twin update: callback(payload_bytes)
        direct method: callback(method_name, payload_bytes) -> (result_code, body_bytes)
    """

    def __init__(self):
        self._connection_status_callback = None
        self._twin_callback = None
        self._method_callback = None

    def set_connection_status_callback(self, callback):
        self._connection_status_callback = callback

    def set_twin_callback(self, callback):
        self._twin_callback = callback

    def set_method_callback(self, callback):
        self._method_callback = callback

    @abc.abstractmethod
    def connect(self):
        """Open the connection. Raises SetupError on failure."""

    @abc.abstractmethod
    def disconnect(self):
        """Close the connection, keeping the handle reusable."""

    @abc.abstractmethod
    def destroy(self):
        """Release the handle. The client must not be used afterwards."""

    @abc.abstractmethod
    def pump(self):
        """Deliver pending events and flush outbound messages."""

    @abc.abstractmethod
    def send_event(self, json_text):
        """Queue a telemetry message."""

    @abc.abstractmethod
    def report_state(self, json_text):
        """Queue a reported-properties patch."""

    def respond_to_method(self, event, result_code, body):
        """Send a direct method response. Adapters with a response channel override this."""

    def _dispatch(self, event):
        """
        Route one HubEvent to the registered callback.

        Events without a registered callback are dropped.
        """
        kind = event.kind

        if kind == HubEventKind.CONNECTION_STATUS:
            if self._connection_status_callback:
                self._connection_status_callback(event.authenticated, event.reason)

        elif kind == HubEventKind.TWIN_UPDATE:
            if self._twin_callback:
                self._twin_callback(event.payload)

        elif kind == HubEventKind.METHOD_INVOKED:
            if self._method_callback:
                result_code, body = self._method_callback(event.method_name, event.payload)
                self.respond_to_method(event, result_code, body)

        elif kind == HubEventKind.SEND_CONFIRMATION:
            if DEBUG_ENABLED or not event.succeeded:
                status = "OK" if event.succeeded else "FAILED"
                print("[HUB] Send confirmation {}: {}".format(status, event.context))

        else:
            print("[HUB] [WARNING] Unknown event kind: {}".format(kind))


class AzureHubClient(HubClient):
    """
    HubClient over azure-iot-device's synchronous IoTHubDeviceClient.

    SDK handlers run on SDK threads and only enqueue HubEvents. Outbound
    messages are queued by send_event()/report_state() and sent on pump(),
    after inbound events have been delivered.

    The device client should be created with connection_retry=False so
    reconnects follow the agent's own backoff.
    """

    def __init__(self, device_client):
        super().__init__()
        self._client = device_client
        self._events = queue.Queue()
        self._outbound = queue.Queue()
        self._last_connected = None
        self._destroyed = False

        device_client.on_connection_state_change = self._on_connection_state_change
        device_client.on_twin_desired_properties_patch_received = self._on_twin_patch
        device_client.on_method_request_received = self._on_method_request

    # ------------------------------------------------------------------
    # SDK thread handlers
    # ------------------------------------------------------------------

    def _on_connection_state_change(self):
        connected = bool(self._client.connected)
        if connected == self._last_connected:
            return
        self._last_connected = connected
        reason = ConnectionStatusReason.CONNECTION_OK if connected else ConnectionStatusReason.NO_NETWORK
        self._events.put(HubEvent.connection_status(connected, reason))

    def _on_twin_patch(self, patch):
        self._events.put(HubEvent.twin_update(json.dumps(patch).encode("utf-8")))

    def _on_method_request(self, method_request):
        payload = json.dumps(method_request.payload).encode("utf-8")
        self._events.put(HubEvent.method_invoked(method_request.name, payload, request=method_request))

    # ------------------------------------------------------------------
    # HubClient
    # ------------------------------------------------------------------

    def connect(self):
        """
        Connect and queue the full twin for delivery on the next pump().

        Raises:
            SetupError: If the connection could not be opened
        """
        try:
            self._client.connect()
        except Exception as e:
            raise SetupError("Hub connect failed: {}".format(e)) from e

        self._on_connection_state_change()

        try:
            twin = self._client.get_twin()
        except Exception as e:
            print("[HUB] [WARNING] Failed to fetch initial twin: {}".format(e))
        else:
            self._events.put(HubEvent.twin_update(json.dumps(twin).encode("utf-8")))

    def disconnect(self):
        try:
            self._client.disconnect()
        except Exception as e:
            print("[HUB] [WARNING] Disconnect failed: {}".format(e))

    def destroy(self):
        if self._destroyed:
            return
        self._destroyed = True
        try:
            self._client.shutdown()
        except Exception as e:
            print("[HUB] [WARNING] Client shutdown failed: {}".format(e))

    def send_event(self, json_text):
        self._outbound.put(("telemetry", json_text))

    def report_state(self, json_text):
        self._outbound.put(("reported", json_text))

    def pump(self):
        """Deliver queued SDK events, then flush outbound messages."""
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                break
            self._dispatch(event)

        while True:
            try:
                kind, json_text = self._outbound.get_nowait()
            except queue.Empty:
                break
            try:
                self._send(kind, json_text)
            except HubClientError as e:
                print("[HUB] [ERROR] {}".format(e))
                self._dispatch(HubEvent.send_confirmation(False, json_text))
            else:
                self._dispatch(HubEvent.send_confirmation(True, json_text))

    def respond_to_method(self, event, result_code, body):
        if event.request is None:
            return
        try:
            payload = json.loads(body.decode("utf-8")) if body else None
            response = MethodResponse.create_from_method_request(event.request, result_code, payload)
            self._client.send_method_response(response)
        except Exception as e:
            print("[HUB] [ERROR] Failed to respond to method '{}': {}".format(event.method_name, e))
            if DEBUG_ENABLED:
                traceback.print_exception(e, e, e.__traceback__)

    def _send(self, kind, json_text):
        try:
            if kind == "telemetry":
                message = Message(json_text, content_encoding="utf-8", content_type="application/json")
                self._client.send_message(message)
            else:
                self._client.patch_twin_reported_properties(json.loads(json_text))
        except Exception as e:
            raise HubClientError("Failed to send {} message: {}".format(kind, e)) from e

    def __repr__(self):
        return "AzureHubClient(connected={})".format(self._last_connected)
