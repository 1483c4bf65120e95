from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from airlink.core.exceptions import FileQuotaExceeded, FileTooLarge

DEFAULT_MAX_FILE_SIZE_BYTES = 20 * 1024 * 1024
DEFAULT_MAX_FILES_PER_SESSION = 5


class AdmissionDecision(str, Enum):
    admit = "admit"
    reject_too_large = "reject_too_large"
    reject_quota_exceeded = "reject_quota_exceeded"


@dataclass(frozen=True)
class CapacityPolicy:
    """Admission control for files announced into a session.

    Pure: it never touches a session. The registry applies the decision and the
    counter increment together under its lock.
    """

    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    max_files_per_session: int = DEFAULT_MAX_FILES_PER_SESSION

    def evaluate(self, file_count: int, declared_size: int) -> AdmissionDecision:
        if declared_size > self.max_file_size_bytes:
            return AdmissionDecision.reject_too_large
        if file_count >= self.max_files_per_session:
            return AdmissionDecision.reject_quota_exceeded
        return AdmissionDecision.admit

    def enforce(self, file_count: int, declared_size: int) -> None:
        """Raise the domain error matching a rejection; return on admit."""
        decision = self.evaluate(file_count, declared_size)
        if decision is AdmissionDecision.reject_too_large:
            raise FileTooLarge(declared_size, self.max_file_size_bytes)
        if decision is AdmissionDecision.reject_quota_exceeded:
            raise FileQuotaExceeded(file_count, self.max_files_per_session)


__all__ = [
    "AdmissionDecision",
    "CapacityPolicy",
    "DEFAULT_MAX_FILES_PER_SESSION",
    "DEFAULT_MAX_FILE_SIZE_BYTES",
]
