## Main Execution Script
from .controllers import main_signal_task
from .controllers.signal_controller.config import (
    ConfigValidationError,
    SignalClientConfig,
)
from .tools.logger import *
import argparse
import asyncio
from time import sleep

## Local Signal Server Address
SERVER_ADDRESS = "localhost:8081"


def build_parser():
    parser = argparse.ArgumentParser(description="WebRTC Signal Client")
    parser.add_argument(
        "-s",
        "--server",
        default=SERVER_ADDRESS,
        help="Signal server address as host:port",
    )
    parser.add_argument("--login", required=True, help="Login id sent to the server")
    parser.add_argument(
        "-l",
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set the logging level (use -l or --log-level)",
    )
    parser.add_argument("--log-dir", help="Also write log files under this directory")
    parser.add_argument(
        "--session-timeout",
        type=float,
        default=None,
        help="Close the session this many seconds after connecting",
    )
    parser.add_argument(
        "--no-login-reply",
        action="store_true",
        help="Do not wait for the server's first message after login",
    )
    parser.add_argument(
        "--correlate",
        action="store_true",
        help="Match offers and answers by correlation id",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    set_log_level(args.log_level)
    if args.log_dir:
        enable_file_logging(args.log_dir)

    config = SignalClientConfig(
        session_timeout=args.session_timeout,
        await_login_reply=not args.no_login_reply,
        correlate=args.correlate,
    )
    try:
        config.validate()
    except ConfigValidationError as e:
        log_error(f"Invalid configuration: {e}")
        return 2

    while True:
        try:
            log_info(f"Attempting to connect to signal server at {args.server}...")
            asyncio.run(main_signal_task(args.server, args.login, config))
        except KeyboardInterrupt:
            log_warning("Keyboard interrupt received. Closing connection and exiting.")
            break
        except Exception as e:
            log_error(f"Error on signal connection: {e}")
        log_warning("Reconnecting in 1 second...")
        sleep(1)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
