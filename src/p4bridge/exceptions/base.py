from __future__ import annotations


class P4BridgeError(Exception):
    """Root of every exception p4bridge raises on purpose.

    Catch it where the adapter meets the host application; anything else
    (cancellation, programming errors) is left to propagate.

    Attributes:
        message: Text shown to the user.

    Example:
        ```python
        try:
            files = await client.get_opened_files()
        except P4BridgeError as e:
            logger.error("perforce_failed", error=e.message)
        ```
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
