"""
Provisioning
============
Creates hub clients for the two supported connection types.

- Direct: X.509 certificate authentication straight to a known IoT hub
  hostname.
- DPS: X.509 registration with the Device Provisioning Service under an ID
  scope; the service assigns the hub.

Both return an unconnected AzureHubClient. Any failure is a SetupError and is
retried by the connection state machine with backoff.

Module: provisioning
Version: 1.0.0
"""

from azure.iot.device import IoTHubDeviceClient, ProvisioningDeviceClient, X509

from core.constants import DEFAULT_PROVISIONING_HOST
from core.errors import ConfigurationError, SetupError
from core.types import ConnectionType, ExitCode
from hub import AzureHubClient


def _load_x509(cert_file, key_file, pass_phrase=None):
    return X509(cert_file=cert_file, key_file=key_file, pass_phrase=pass_phrase)


class DirectCertificateProvisioner:
    """Direct connection to a configured hub hostname."""

    def __init__(self, hostname, device_id, cert_file, key_file, pass_phrase=None):
        self.hostname = hostname
        self.device_id = device_id
        self.cert_file = cert_file
        self.key_file = key_file
        self.pass_phrase = pass_phrase

    def create_client(self):
        """
        Build a device client for the configured hub.

        Returns:
            AzureHubClient (not connected)

        Raises:
            SetupError: If the certificate cannot be loaded or the client
                        cannot be created
        """
        try:
            device_client = IoTHubDeviceClient.create_from_x509_certificate(
                x509=_load_x509(self.cert_file, self.key_file, self.pass_phrase),
                hostname=self.hostname,
                device_id=self.device_id,
                connection_retry=False,
            )
        except Exception as e:
            raise SetupError("Direct client creation failed for {}: {}".format(self.hostname, e)) from e

        print("[PROV] Using direct connection to {}".format(self.hostname))
        return AzureHubClient(device_client)

    def __repr__(self):
        return "DirectCertificateProvisioner(hostname={}, device_id={})".format(self.hostname, self.device_id)


class ScopeEnrollmentProvisioner:
    """Device Provisioning Service enrollment under an ID scope."""

    def __init__(
        self,
        scope_id,
        registration_id,
        cert_file,
        key_file,
        provisioning_host=DEFAULT_PROVISIONING_HOST,
        pass_phrase=None):
        self.scope_id = scope_id
        self.registration_id = registration_id
        self.cert_file = cert_file
        self.key_file = key_file
        self.provisioning_host = provisioning_host
        self.pass_phrase = pass_phrase

    def create_client(self):
        """
        Register with DPS and build a device client for the assigned hub.

        Returns:
            AzureHubClient (not connected)

        Raises:
            SetupError: If registration fails or is not assigned
        """
        try:
            x509 = _load_x509(self.cert_file, self.key_file, self.pass_phrase)
            provisioning_client = ProvisioningDeviceClient.create_from_x509_certificate(
                provisioning_host=self.provisioning_host,
                registration_id=self.registration_id,
                id_scope=self.scope_id,
                x509=x509,
            )
            result = provisioning_client.register()
        except Exception as e:
            raise SetupError("DPS registration failed: {}".format(e)) from e

        print("[PROV] DPS registration result: {}".format(result.status))
        if result.status != "assigned":
            raise SetupError("DPS registration not assigned: {}".format(result.status))

        state = result.registration_state
        print("[PROV] Assigned to hub {} as {}".format(state.assigned_hub, state.device_id))

        try:
            device_client = IoTHubDeviceClient.create_from_x509_certificate(
                x509=x509,
                hostname=state.assigned_hub,
                device_id=state.device_id,
                connection_retry=False,
            )
        except Exception as e:
            raise SetupError("Client creation failed for {}: {}".format(state.assigned_hub, e)) from e

        return AzureHubClient(device_client)

    def __repr__(self):
        return "ScopeEnrollmentProvisioner(scope_id={}, registration_id={})".format(
            self.scope_id, self.registration_id)


def create_provisioner(cfg):
    """
    Build the provisioner matching cfg['connection_type'].

    Args:
        cfg: Validated device configuration

    Returns:
        DirectCertificateProvisioner or ScopeEnrollmentProvisioner

    Raises:
        ConfigurationError: If the connection type is not supported
    """
    connection_type = cfg.get("connection_type")

    if connection_type == ConnectionType.DIRECT:
        return DirectCertificateProvisioner(
            hostname=cfg["hostname"],
            device_id=cfg["device_id"],
            cert_file=cfg["cert_file"],
            key_file=cfg["key_file"],
            pass_phrase=cfg.get("pass_phrase"),
        )

    if connection_type == ConnectionType.DPS:
        return ScopeEnrollmentProvisioner(
            scope_id=cfg["scope_id"],
            registration_id=cfg["device_id"],
            cert_file=cfg["cert_file"],
            key_file=cfg["key_file"],
            provisioning_host=cfg.get("provisioning_host") or DEFAULT_PROVISIONING_HOST,
            pass_phrase=cfg.get("pass_phrase"),
        )

    raise ConfigurationError(
        "Unsupported connection type: {}".format(connection_type),
        exit_code=ExitCode.VALIDATE_CONNECTION_TYPE,
    )
