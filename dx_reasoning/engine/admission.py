"""
DxReasoning — Контроль допуску (backpressure)

До capacity випадків обробляються одночасно. Понад це запити чекають
в обмеженій черзі з оцінкою часу очікування. Коли черга повна,
запит відхиляється з AdmissionRejectedError та retry-after.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Optional

from dx_reasoning.config import AdmissionConfig
from dx_reasoning.utils import AdmissionRejectedError, DiagnosisTimeoutError, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AdmissionTicket:
    """Дозвіл на обробку одного випадку"""
    estimated_wait_seconds: float
    waited_seconds: float


class AdmissionController:
    """
    Лічильник випадків в обробці з обмеженою чергою.

    Приклад використання:
        admission = AdmissionController(AdmissionConfig(capacity=2))

        ticket = admission.acquire(timeout=30)
        try:
            ...
        finally:
            admission.release()
    """

    def __init__(self, config: Optional[AdmissionConfig] = None):
        self.config = config or AdmissionConfig()
        self._condition = threading.Condition()
        self._in_flight = 0
        self._waiting = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def waiting(self) -> int:
        return self._waiting

    def estimate_wait(self, position: int) -> float:
        """Очікування для позиції в черзі (1-based)"""
        if position <= 0:
            return 0.0
        waves = math.ceil(position / self.config.capacity)
        return waves * self.config.expected_case_seconds

    def acquire(self, timeout: Optional[float] = None) -> AdmissionTicket:
        """
        Отримати дозвіл на обробку.

        Args:
            timeout: Скільки максимум чекати в черзі

        Returns:
            AdmissionTicket

        Raises:
            AdmissionRejectedError: черга очікування заповнена
            DiagnosisTimeoutError: не дочекались місця за timeout
        """
        started = time.monotonic()

        with self._condition:
            if self._in_flight < self.config.capacity and self._waiting == 0:
                self._in_flight += 1
                return AdmissionTicket(estimated_wait_seconds=0.0, waited_seconds=0.0)

            if self._waiting >= self.config.max_waiting:
                logger.warning(
                    f"Admission rejected: {self._in_flight} in flight, "
                    f"{self._waiting} waiting"
                )
                raise AdmissionRejectedError(
                    "Diagnostic service is overloaded",
                    retry_after_seconds=self.config.retry_after_seconds,
                )

            self._waiting += 1
            estimated = self.estimate_wait(self._waiting)

            try:
                admitted = self._condition.wait_for(
                    lambda: self._in_flight < self.config.capacity,
                    timeout=timeout,
                )
            finally:
                self._waiting -= 1

            if not admitted:
                raise DiagnosisTimeoutError(
                    f"No processing slot became free within {timeout}s",
                    deadline_seconds=timeout,
                    stage="admission",
                )

            self._in_flight += 1
            return AdmissionTicket(
                estimated_wait_seconds=estimated,
                waited_seconds=time.monotonic() - started,
            )

    def release(self) -> None:
        """Звільнити місце після завершення обробки"""
        with self._condition:
            if self._in_flight <= 0:
                raise RuntimeError("release() called without a matching acquire()")
            self._in_flight -= 1
            self._condition.notify()

    def __repr__(self) -> str:
        return (
            f"AdmissionController(capacity={self.config.capacity}, "
            f"in_flight={self._in_flight}, waiting={self._waiting})"
        )
