"""
DxReasoning — Діагностичний сервіс

DiagnosticService: контроль допуску + обмежений пул воркерів
навколо DiagnosticPipeline. Викликач чекає результат не довше
за жорсткий дедлайн запиту.
"""

import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Optional

from dx_reasoning.config import DxConfig
from dx_reasoning.schemas import DifferentialDiagnosis, NormalizedCase
from dx_reasoning.utils import DiagnosisTimeoutError, get_logger

from .admission import AdmissionController
from .pipeline import DiagnosticPipeline

logger = get_logger(__name__)


class DiagnosticService:
    """
    Сервісна обгортка pipeline.

    Приклад використання:
        service = DiagnosticService.from_config(load_config("config/default.yaml"))
        result = service.diagnose(case)
    """

    def __init__(self, pipeline: DiagnosticPipeline, config: Optional[DxConfig] = None):
        self.pipeline = pipeline
        self.config = config or pipeline.config
        self.admission = AdmissionController(self.config.admission)
        self._pool = ThreadPoolExecutor(
            max_workers=self.config.admission.worker_threads,
            thread_name_prefix="dx-worker",
        )

    @classmethod
    def from_config(cls, config: Optional[DxConfig] = None) -> "DiagnosticService":
        config = config or DxConfig()
        return cls(DiagnosticPipeline.from_config(config), config)

    def diagnose(self, case: NormalizedCase) -> DifferentialDiagnosis:
        """
        Обробити випадок з контролем допуску та дедлайном.

        Raises:
            AdmissionRejectedError: сервіс перевантажений
            DiagnosisTimeoutError: дедлайн вичерпано
            DiagnosticError: будь-яка відмова pipeline
        """
        deadline = self.config.pipeline.deadline_seconds
        started = time.monotonic()

        ticket = self.admission.acquire(timeout=deadline)
        if ticket.estimated_wait_seconds:
            logger.info(
                f"Case {case.case_id}: admitted after {ticket.waited_seconds:.2f}s "
                f"(estimated {ticket.estimated_wait_seconds:.2f}s)"
            )

        remaining = max(0.0, deadline - (time.monotonic() - started))
        try:
            future = self._pool.submit(
                self.pipeline.run, case, remaining, ticket.estimated_wait_seconds or None
            )
        except BaseException:
            self.admission.release()
            raise

        # Місце звільняється, коли воркер справді завершив роботу
        future.add_done_callback(lambda _: self.admission.release())

        try:
            return future.result(timeout=remaining)
        except DiagnosisTimeoutError:
            raise
        except FutureTimeoutError:
            future.cancel()
            raise DiagnosisTimeoutError(
                f"Case {case.case_id} was not processed within {deadline}s",
                deadline_seconds=deadline,
                stage="service",
            ) from None

    @property
    def snapshot_version(self) -> Optional[str]:
        return self.pipeline.snapshot_version

    @property
    def is_ready(self) -> bool:
        return self.pipeline.registry.is_ready

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False)
        self.pipeline.shutdown()

    def __repr__(self) -> str:
        return f"DiagnosticService(pipeline={self.pipeline!r}, admission={self.admission!r})"
