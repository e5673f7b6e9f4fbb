from EchoChat.config import config
from EchoChat.core.exceptions import PreconditionError

HOST_WHILE_CONNECTED = "Error: You must be logged off to change the host."
PORT_WHILE_CONNECTED = "Error: You must be logged off to change the port."


class Client:
    """
    Base client class holding the server address.

    The address may only change while the client is disconnected.
    """

    def __init__(self, host: str = config.DEFAULT_HOST, port: int = config.DEFAULT_PORT):
        """
        Initialize client with connection parameters.

        Args:
            host (str): Server hostname to connect to
            port (int): Server port number
        """
        self._host = host
        self._port = port

    @property
    def connected(self) -> bool:
        return False

    @property
    def host(self) -> str:
        return self._host

    @host.setter
    def host(self, value: str) -> None:
        if self.connected:
            raise PreconditionError(HOST_WHILE_CONNECTED)
        self._host = value

    @property
    def port(self) -> int:
        return self._port

    @port.setter
    def port(self, value: int) -> None:
        if self.connected:
            raise PreconditionError(PORT_WHILE_CONNECTED)
        self._port = value

    @property
    def uri(self) -> str:
        return f"ws://{self._host}:{self._port}"

