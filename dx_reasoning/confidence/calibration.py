"""
DxReasoning — Калібрування апостеріорних ймовірностей

Калібратор відображає вектор апостеріорних ймовірностей когорти
(сума = 1) у калібрований вектор (сума = 1).

- IdentityCalibrator: без змін
- TemperatureCalibrator: p^(1/T), ренормалізація
- PlattCalibrator: sigmoid(a·logit(p) + b), ренормалізація

fit() підбирає лише скалярні параметри на відкладеній вибірці.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np

from dx_reasoning.config import CalibrationMethod, ConfidenceConfig


_EPS = 1e-12


def _renormalize(values: np.ndarray) -> np.ndarray:
    total = values.sum()
    if total <= 0:
        return np.full_like(values, 1.0 / len(values))
    return values / total


def _logit(p: np.ndarray) -> np.ndarray:
    p = np.clip(p, _EPS, 1 - _EPS)
    return np.log(p / (1 - p))


class Calibrator(ABC):
    """Інтерфейс калібратора"""

    method: CalibrationMethod

    @abstractmethod
    def calibrate(self, posteriors: np.ndarray) -> np.ndarray:
        """
        Args:
            posteriors: Апостеріорні ймовірності когорти, сума = 1

        Returns:
            Калібровані ймовірності того ж розміру, сума = 1
        """

    def describe(self) -> str:
        return self.method.value


class IdentityCalibrator(Calibrator):
    method = CalibrationMethod.IDENTITY

    def calibrate(self, posteriors: np.ndarray) -> np.ndarray:
        return np.asarray(posteriors, dtype=np.float64)


class TemperatureCalibrator(Calibrator):
    """
    Temperature scaling у просторі ймовірностей.

    T > 1 згладжує розподіл (менша впевненість),
    T < 1 загострює.
    """

    method = CalibrationMethod.TEMPERATURE

    def __init__(self, temperature: float = 1.0):
        if temperature <= 0:
            raise ValueError(f"Temperature must be positive, got {temperature}")
        self.temperature = temperature

    def calibrate(self, posteriors: np.ndarray) -> np.ndarray:
        p = np.clip(np.asarray(posteriors, dtype=np.float64), _EPS, None)
        return _renormalize(p ** (1.0 / self.temperature))

    def fit(
        self,
        cohorts: Sequence[np.ndarray],
        true_indices: Sequence[int],
        grid: Optional[Sequence[float]] = None
    ) -> "TemperatureCalibrator":
        """
        Підібрати T пошуком по сітці (мінімум NLL правильного діагнозу).

        Args:
            cohorts: Апостеріорні вектори для відкладених випадків
            true_indices: Індекс правильного діагнозу в кожному векторі
            grid: Кандидатні значення T

        Returns:
            self (з оновленою temperature)
        """
        if len(cohorts) != len(true_indices) or not cohorts:
            raise ValueError("cohorts and true_indices must be non-empty and aligned")

        if grid is None:
            grid = np.exp(np.linspace(np.log(0.1), np.log(10.0), 200))

        best_t, best_nll = self.temperature, np.inf
        for t in grid:
            candidate = TemperatureCalibrator(float(t))
            nll = -np.mean([
                np.log(max(candidate.calibrate(p)[i], _EPS))
                for p, i in zip(cohorts, true_indices)
            ])
            if nll < best_nll:
                best_t, best_nll = float(t), nll

        self.temperature = best_t
        return self

    def describe(self) -> str:
        return f"temperature(T={self.temperature:.3f})"


class PlattCalibrator(Calibrator):
    """Platt scaling: sigmoid(a · logit(p) + b)"""

    method = CalibrationMethod.PLATT

    def __init__(self, a: float = 1.0, b: float = 0.0):
        self.a = a
        self.b = b

    def calibrate(self, posteriors: np.ndarray) -> np.ndarray:
        z = self.a * _logit(np.asarray(posteriors, dtype=np.float64)) + self.b
        return _renormalize(1.0 / (1.0 + np.exp(-z)))

    def fit(
        self,
        probabilities: Sequence[float],
        outcomes: Sequence[int],
        max_iter: int = 100,
        tol: float = 1e-8,
        l2: float = 1e-6
    ) -> "PlattCalibrator":
        """
        Логістична регресія outcome ~ logit(p) методом Ньютона.

        Args:
            probabilities: Передбачені ймовірності (по кандидатах)
            outcomes: 1 якщо кандидат виявився правильним, інакше 0

        Returns:
            self (з оновленими a, b)
        """
        x = _logit(np.asarray(probabilities, dtype=np.float64))
        y = np.asarray(outcomes, dtype=np.float64)
        if x.shape != y.shape or x.size == 0:
            raise ValueError("probabilities and outcomes must be non-empty and aligned")

        X = np.column_stack([x, np.ones_like(x)])
        w = np.array([self.a, self.b], dtype=np.float64)

        for _ in range(max_iter):
            p = 1.0 / (1.0 + np.exp(-(X @ w)))
            grad = X.T @ (p - y) + l2 * w
            s = p * (1 - p)
            hessian = (X * s[:, None]).T @ X + l2 * np.eye(2)
            step = np.linalg.solve(hessian, grad)
            w -= step
            if np.max(np.abs(step)) < tol:
                break

        self.a, self.b = float(w[0]), float(w[1])
        return self

    def describe(self) -> str:
        return f"platt(a={self.a:.3f}, b={self.b:.3f})"


def build_calibrator(config: ConfidenceConfig) -> Calibrator:
    """Створити калібратор за конфігурацією"""
    if config.calibration_method == CalibrationMethod.IDENTITY:
        return IdentityCalibrator()
    if config.calibration_method == CalibrationMethod.TEMPERATURE:
        return TemperatureCalibrator(config.temperature)
    if config.calibration_method == CalibrationMethod.PLATT:
        return PlattCalibrator(config.platt_a, config.platt_b)
    raise ValueError(f"Unknown calibration method: {config.calibration_method}")
