"""
HubLink Main Application
========================

Application orchestrator that wires the agent components together and runs
the event loop.

This module implements the HubLinkApplication class which:
- Initializes core systems (event loop, reconnect backoff, state machine)
- Initializes hardware (twin LEDs, sensor, message button)
- Initializes infrastructure (network monitor, hub provisioner)
- Wires the twin synchronizer, method dispatcher and telemetry pump
- Arms the button poll and hub poll timers
- Runs the loop until a stop is requested, then shuts down

Classes:
    - HubLinkApplication: Main application orchestrator

Module: app
Version: 1.0.0
"""

import signal
import traceback

import config
from backoff import ReconnectBackoff, ReconnectPolicy
from core.constants import (
    BUTTON_POLL_PERIOD_SEC,
    DEBUG_ENABLED,
    DEFAULT_NETWORK_INTERFACE,
    FIRMWARE_VERSION,
    HUB_POLL_PERIODS_PER_TELEMETRY,
    LOOP_MAX_WAIT_SEC,
    MEMORY_CHECK_INTERVAL_SEC,
    STATS_PRINT_INTERVAL_SEC,
)
from core.errors import (
    ConfigurationError,
    EventLoopError,
    HardwareError,
    NetworkNotReadyError,
    NetworkStatusError,
)
from core.types import ConnectionState, ExitCode
from event_loop import EventLoop
from hardware import create_actuators, create_button, create_sensor
from methods import MethodDispatcher
from network import NetworkMonitor
from provisioning import create_provisioner
from pump import HubPump
from session import AgentSession
from state import ConnectionStateMachine
from telemetry import TelemetryGate, TelemetrySender
from twin import TwinSynchronizer, build_twin_properties
from utils.memory import MemoryMonitor
from utils.timing import Interval


STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class HubLinkApplication:
    """
    Main application orchestrator for the HubLink device agent.

    Collaborators can be injected (tests, alternative transports); anything
    not injected is built from the device configuration.

    Attributes:
        config: Device configuration dict
        session: AgentSession shared by all components
        event_loop: EventLoop driving all work
        state_machine: ConnectionStateMachine
        running: True while run() is looping

    Usage:
        >>> device_config = config.parse_command_line_arguments(sys.argv[1:])
        >>> app = HubLinkApplication(device_config)
        >>> exit_code = app.run()  # blocks until shutdown
    """

    def __init__(
        self,
        device_config,
        session=None,
        event_loop=None,
        provisioner=None,
        network=None,
        actuators=None,
        sensor=None,
        button=None,
        install_signal_handlers=True):
        """
        Initialize the application.

        Raises:
            ConfigurationError: Invalid reconnect or telemetry settings
            HardwareError: Peripheral initialization failed
            EventLoopError: Event loop or timer creation failed
        """
        self.config = device_config
        self.running = False
        self.install_signal_handlers = install_signal_handlers

        self.session = session or AgentSession(
            device_tag=config.get_device_tag(device_config),
            manufacturer=device_config.get("manufacturer"),
            model=device_config.get("model"),
        )
        self.tag = self.session.device_tag

        print(f"{self.tag} Initializing HubLink v{FIRMWARE_VERSION}")
        print(f"{self.tag} Connection type: {device_config.get('connection_type')}")

        # Core systems
        self.event_loop = event_loop
        self.backoff = None
        self.state_machine = None

        # Hardware
        self.actuators = actuators
        self.sensor = sensor
        self.button = button

        # Infrastructure
        self.network = network
        self.provisioner = provisioner

        # Domain
        self.twin = None
        self.methods = None
        self.telemetry_gate = None
        self.telemetry_sender = None
        self.hub_pump = None

        # Timers
        self.button_timer = None
        self.hub_timer = None

        # Housekeeping
        self.memory_monitor = MemoryMonitor(max_samples=60)
        self._memory_check = Interval(MEMORY_CHECK_INTERVAL_SEC)
        stats_interval = device_config.get("stats_print_interval", STATS_PRINT_INTERVAL_SEC)
        self._stats_print = Interval(stats_interval) if stats_interval else None
        self._previous_handlers = {}

        self._initialize_core_systems()
        self._initialize_hardware()
        self._initialize_infrastructure()
        self._initialize_domain()
        self._initialize_timers()

        print(f"{self.tag} Initialization complete")

    # ========================================================================
    # Initialization
    # ========================================================================

    def _initialize_core_systems(self):
        """Initialize the event loop, reconnect backoff and state machine."""
        if DEBUG_ENABLED:
            print(f"{self.tag} [DEBUG] Initializing core systems...")

        if self.event_loop is None:
            try:
                self.event_loop = EventLoop()
            except Exception as e:
                raise EventLoopError(
                    f"Could not create event loop: {e}", exit_code=ExitCode.INIT_EVENT_LOOP
                ) from e

        try:
            policy = ReconnectPolicy(**self.config.get("reconnect", {}))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid reconnect settings: {e}") from e
        self.backoff = ReconnectBackoff(policy)

        self.state_machine = ConnectionStateMachine(
            provisioner=self.provisioner,
            backoff=self.backoff,
            session=self.session,
        )

        def on_state_change(transition):
            if transition.to_state == ConnectionState.AUTHENTICATED:
                print(f"{self.tag} Connected to hub")
            elif transition.from_state == ConnectionState.AUTHENTICATED:
                print(f"{self.tag} [WARNING] Hub connection lost [{transition.reason}]")

        self.state_machine.on_state_change(on_state_change)

    def _initialize_hardware(self):
        """Open the twin LEDs, the sensor and the message button."""
        if DEBUG_ENABLED:
            print(f"{self.tag} [DEBUG] Initializing hardware...")

        hw_config = self.config.get("hardware", {})
        try:
            if self.actuators is None:
                self.actuators = create_actuators(hw_config)
            if self.sensor is None:
                self.sensor = create_sensor(hw_config)
            if self.button is None:
                self.button = create_button(hw_config)
        except HardwareError as e:
            print(f"{self.tag} [ERROR] Hardware initialization failed: {e}")
            raise

        print(f"{self.tag} Sensor: {type(self.sensor).__name__}")
        if self.button is None:
            print(f"{self.tag} No message button configured")

    def _initialize_infrastructure(self):
        """Create the network monitor and the hub provisioner."""
        if self.network is None:
            self.network = NetworkMonitor(
                interface=self.config.get("network_interface", DEFAULT_NETWORK_INTERFACE),
                probe_host=self.config.get("probe_host"),
            )
        if self.provisioner is None:
            self.provisioner = create_provisioner(self.config)
        self.state_machine.provisioner = self.provisioner

        if DEBUG_ENABLED:
            print(f"{self.tag} [DEBUG] {self.network!r}, {self.provisioner!r}")

    def _initialize_domain(self):
        """Wire twin synchronization, direct methods and telemetry."""
        self.twin = TwinSynchronizer(
            build_twin_properties(self.actuators),
            report_callback=self.state_machine.report_state,
        )

        def count_method(name):
            self.session.stats.methods_invoked += 1

        self.methods = MethodDispatcher(on_invoked=count_method)
        self.state_machine.set_handlers(
            twin_callback=self.twin.on_desired_properties_received,
            method_callback=self.methods.on_method_invoked,
        )

        try:
            self.telemetry_gate = TelemetryGate(
                self.config.get("telemetry_interval_polls", HUB_POLL_PERIODS_PER_TELEMETRY)
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid telemetry interval: {e}") from e

        self.telemetry_sender = TelemetrySender(self.state_machine, self.network, self.session)
        self.hub_pump = HubPump(
            network=self.network,
            machine=self.state_machine,
            gate=self.telemetry_gate,
            sender=self.telemetry_sender,
            sensor=self.sensor,
            session=self.session,
        )

    def _initialize_timers(self):
        """Arm the button poll timer and the hub poll timer."""
        if self.button is not None:
            try:
                self.button_timer = self.event_loop.create_periodic_timer(
                    self._on_button_tick,
                    self.config.get("button_poll_period", BUTTON_POLL_PERIOD_SEC),
                    "button",
                )
            except EventLoopError as e:
                raise EventLoopError(str(e), exit_code=ExitCode.INIT_BUTTON_POLL_TIMER) from e

        try:
            self.hub_timer = self.event_loop.create_periodic_timer(
                self.hub_pump.on_tick, self.backoff.current_period, "hub"
            )
        except EventLoopError as e:
            raise EventLoopError(str(e), exit_code=ExitCode.INIT_AZURE_TIMER) from e

        self.backoff.on_rearm(self.hub_timer.set_period)

    # ========================================================================
    # Timer handlers
    # ========================================================================

    def _on_button_tick(self):
        try:
            pressed = self.button.poll()
        except HardwareError as e:
            print(f"{self.tag} [ERROR] {e}")
            self.session.request_stop(
                e.exit_code or ExitCode.IS_BUTTON_PRESSED_GET_VALUE, str(e)
            )
            return

        if pressed:
            print(f"{self.tag} Button pressed")
            self.telemetry_sender.send_button_press()

    def _on_terminate(self, signum, frame):
        print(f"{self.tag} Received {signal.Signals(signum).name} - shutting down")
        self.session.request_stop(ExitCode.SUCCESS, f"signal {signum}")

    def _install_signal_handlers(self):
        for signum in STOP_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, self._on_terminate)

    def _restore_signal_handlers(self):
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous_handlers.clear()

    # ========================================================================
    # Main loop
    # ========================================================================

    def run(self):
        """
        Main application loop.

        SIGINT and SIGTERM only set the stop flag, which is checked after
        each wait, so timer handlers always run to completion.

        Returns:
            int: Exit code requested by the component that stopped the loop
        """
        print(f"{self.tag} Starting HubLink application...")
        self.running = True

        if self.install_signal_handlers:
            self._install_signal_handlers()

        try:
            self._check_network_at_startup()

            while not self.session.stop_requested:
                self.event_loop.run_once(LOOP_MAX_WAIT_SEC)
                self._housekeeping()

        except EventLoopError as e:
            print(f"{self.tag} [ERROR] Event loop failed: {e}")
            self.session.request_stop(e.exit_code, str(e))
        except Exception as e:
            print(f"{self.tag} [ERROR] Fatal error: {e}")
            raise
        finally:
            self._restore_signal_handlers()
            self._shutdown()

        return self.session.exit_code

    def _check_network_at_startup(self):
        try:
            if not self.network.is_reachable():
                print(f"{self.tag} [WARNING] Not connected to the internet yet")
        except NetworkNotReadyError:
            print(f"{self.tag} [WARNING] Network is not ready. Device cannot connect until network is ready.")
        except NetworkStatusError as e:
            print(f"{self.tag} [WARNING] {e}")

    def _housekeeping(self):
        if self._memory_check.due():
            self.memory_monitor.check()

        if self._stats_print is not None and self._stats_print.due():
            self.session.stats.print_report()

    def _shutdown(self):
        """
        Graceful shutdown.

        Leaves the LEDs off, destroys the hub client and disposes the timers.
        """
        print(f"{self.tag} Shutting down HubLink application...")
        if self.session.stop_reason:
            print(f"{self.tag} Stop reason: {self.session.stop_reason}")

        self.running = False

        try:
            if self.twin:
                self.twin.turn_off_all()

            self.state_machine.destroy_client()

            self.event_loop.dispose_timer(self.button_timer)
            self.event_loop.dispose_timer(self.hub_timer)
            self.event_loop.close()

            for device in list(self.actuators.values()) + [self.sensor, self.button]:
                if device is not None and hasattr(device, "deinit"):
                    device.deinit()

            self.session.stats.print_report()
            print(f"{self.tag} Shutdown complete (exit code {self.session.exit_code})")

        except Exception as e:
            print(f"{self.tag} [ERROR] Error during shutdown: {e}")
            traceback.print_exception(e, e, e.__traceback__)

    def get_status(self):
        """
        Get current application status.

        Returns:
            Dictionary with status information
        """
        return {
            "firmware_version": FIRMWARE_VERSION,
            "running": self.running,
            "state": ConnectionState.to_string(self.state_machine.get_current_state()),
            "poll_period": self.backoff.current_period,
            "stop_requested": self.session.stop_requested,
            "exit_code": self.session.exit_code,
            "stats": self.session.stats.as_dict(),
        }

    def __repr__(self):
        return "HubLinkApplication(state={})".format(
            ConnectionState.to_string(self.state_machine.get_current_state()))
