"""Exception types shared by the daemon and the client."""


class EasyshotError(Exception):
    """Base class for all sway-easyshot errors."""


class ToolError(EasyshotError):
    """An external program failed, was missing, or timed out."""

    def __init__(self, tool: str, message: str, returncode: int | None = None):
        super().__init__(f"{tool}: {message}")
        self.tool = tool
        self.returncode = returncode


class CommandError(EasyshotError):
    """A handler precondition failed or a command could not complete."""


class ProtocolError(EasyshotError):
    """A request or response could not be decoded."""


class ConnectionClosed(EasyshotError):
    """The peer closed the connection without sending anything."""
