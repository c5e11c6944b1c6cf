"""Key layout on the queue store."""

from hunter.core.config import QueueConfig


class QueueKeys:
    """One fixed request queue; result and status keys namespaced by job id."""

    def __init__(self, config: QueueConfig) -> None:
        self._config = config

    @property
    def request_queue(self) -> str:
        return self._config.request_queue

    def result_key(self, job_id: str) -> str:
        return f"{self._config.result_prefix}:{job_id}"

    def status_key(self, job_id: str) -> str:
        return f"{self._config.status_prefix}:{job_id}"
