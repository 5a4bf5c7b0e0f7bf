from .signal_controller import SignalClient
from .signal_controller.config import SignalClientConfig
from .signal_controller.errors import DecodeError
from ..tools.logger import *


async def main_signal_task(server_address, login_id, config=None):
    """
    Connect to the signal server and log every signal it pushes until the
    connection fails or the task is cancelled.
    """
    client = SignalClient(config or SignalClientConfig())

    try:
        await client.connect(server_address, login_id)
        log_info(f"Connected to signal server at {server_address} as {login_id}")

        while True:
            try:
                signal = await client.wait_offer()
            except DecodeError as e:
                log_warning(f"Skipping undecodable message: {e}")
                continue
            log_info(f"Received '{signal.kind}' signal from peer '{signal.peer}'")
            log_debug(f"Signal data: {signal.data}")
    finally:
        await client.close()
