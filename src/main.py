"""
HubLink - Entry Point
=====================

Main entry point for the HubLink device agent.

This module:
- Parses command-line options and the optional settings file
- Validates the connection configuration
- Creates the HubLinkApplication instance
- Runs the main loop
- Maps top-level errors to process exit codes

Module: main
Version: 1.0.0
"""

import sys
import traceback

import config
from core.constants import FIRMWARE_VERSION
from core.errors import ConfigurationError, EventLoopError, HardwareError
from core.types import ExitCode


def load_device_configuration(argv):
    """
    Build and validate the device configuration.

    Args:
        argv: Command-line arguments without the program name

    Returns:
        dict: Validated device configuration

    Raises:
        ConfigurationError: With the exit code of the failed check
    """
    print("Loading configuration...")
    device_config = config.parse_command_line_arguments(argv)

    exit_code = config.validate_user_configuration(device_config)
    if exit_code != ExitCode.SUCCESS:
        config.print_usage()
        raise ConfigurationError("Invalid configuration", exit_code=exit_code)

    print("  Device ID: {}".format(device_config["device_id"]))
    print("  Network interface: {}".format(device_config.get("network_interface")))
    print("Configuration loaded successfully")
    print()
    return device_config


def run_application(device_config):
    """
    Create and run the application.

    Returns:
        int: Exit code from the run loop
    """
    from app import HubLinkApplication

    app = None
    try:
        print("Creating HubLinkApplication instance...")
        app = HubLinkApplication(device_config)
        print()

        print("Starting application...")
        print("=" * 60)
        print()
        return app.run()

    except Exception as e:
        if app:
            try:
                status = app.get_status()
            except Exception as status_error:
                print("Could not read application status: {}".format(status_error))
            else:
                print()
                print("Application status at time of crash:")
                for key, value in status.items():
                    print("  {}: {}".format(key, value))
        raise


def run_main(argv=None):
    """
    Main entry point.

    Args:
        argv: Command-line arguments without the program name
              (defaults to sys.argv[1:])

    Returns:
        int: Process exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    print("=" * 60)
    print("HubLink v{} - IoT Hub Device Agent".format(FIRMWARE_VERSION))
    print("=" * 60)

    exit_code = ExitCode.SUCCESS
    try:
        device_config = load_device_configuration(argv)
        exit_code = run_application(device_config)

    except (ConfigurationError, HardwareError, EventLoopError) as e:
        print()
        print("=" * 60)
        print("STARTUP FAILED: {}".format(e))
        print("=" * 60)
        exit_code = e.exit_code if e.exit_code is not None else ExitCode.MAIN_EVENT_LOOP_FAIL

    except Exception as e:
        print()
        print("=" * 60)
        print("UNHANDLED EXCEPTION: {}".format(e))
        print("=" * 60)
        traceback.print_exception(type(e), e, e.__traceback__)
        exit_code = ExitCode.MAIN_EVENT_LOOP_FAIL

    finally:
        print()
        print("=" * 60)
        print("HubLink - Application exiting (exit code {})".format(exit_code))
        print("=" * 60)

    return exit_code


def main():
    """Console script entry point."""
    sys.exit(run_main())


if __name__ == "__main__":
    main()
