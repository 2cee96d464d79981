"""
Direct Method Dispatcher
========================
Maps direct method names to local handlers.

Handlers return (result_code, response_body). The body is a freshly built
bytes object holding JSON; the dispatcher does not keep it. Names are
matched exactly and case-sensitively. Unknown methods get (-1, b'{}').

Module: methods
Version: 1.0.0
"""

import types

from core.constants import DEBUG_ENABLED

METHOD_NOT_FOUND = -1
METHOD_OK = 200


def trigger_alarm(payload):
    """Raise the local alarm."""
    print("[METHOD] ----- ALARM TRIGGERED! -----")
    return METHOD_OK, b'"Alarm Triggered"'


DEFAULT_METHOD_HANDLERS = {
    "TriggerAlarm": trigger_alarm,
}


class MethodDispatcher:
    """
    Read-only name -> handler table.

    Args:
        handlers: dict of name -> callable(payload) returning (code, body)
        on_invoked: Optional callable(name) notified on every invocation
    """

    def __init__(self, handlers=None, on_invoked=None):
        table = dict(DEFAULT_METHOD_HANDLERS if handlers is None else handlers)
        self._handlers = types.MappingProxyType(table)
        self._on_invoked = on_invoked

    @property
    def handlers(self):
        return self._handlers

    def on_method_invoked(self, method_name, payload):
        """
        Dispatch one direct method call.

        Args:
            method_name: Method name as sent by the hub
            payload: Request payload bytes (passed to the handler unparsed)

        Returns:
            tuple: (result_code, response_body_bytes)
        """
        print("[METHOD] Received direct method call: {}".format(method_name))
        if self._on_invoked:
            self._on_invoked(method_name)

        handler = self._handlers.get(method_name)
        if handler is None:
            if DEBUG_ENABLED:
                print("[METHOD] [DEBUG] No handler for '{}'".format(method_name))
            return METHOD_NOT_FOUND, b"{}"

        result_code, body = handler(payload)
        return result_code, bytes(body)
