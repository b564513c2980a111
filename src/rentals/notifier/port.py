"""Notifier port: abstract interface for customer and staff messages."""

from abc import ABC, abstractmethod


class Notifier(ABC):
    """Sends a templated message over email or SMS."""

    @abstractmethod
    def send(
        self,
        template: str,
        recipient: str,
        payload: dict,
        channel: str = "email",
    ) -> dict:
        """Render ``template`` with ``payload`` and deliver it to ``recipient``.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
