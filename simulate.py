"""
Simulated datasets for the experiments.

Every generator takes an explicit torch.Generator so experiments and tests are
reproducible without touching the global seed. Everything is built on the CPU
in constants.DTYPE; callers move results to a device if they want.
"""

# imports
# ---

# builtins
import math
from typing import Callable, List, Optional, Sequence, Tuple

# 3rd party
import torch

# local
import constants


# types
# ---

CurveFn = Callable[[torch.Tensor], torch.Tensor]


# covariances
# ---

def ar_covariance(d: int, rho: float) -> torch.Tensor:
    """
    Autoregressive covariance: cov[i, j] = rho^|i - j|.
    """
    idx = torch.arange(d, dtype=constants.DTYPE)
    return rho ** (idx.view(-1, 1) - idx.view(1, -1)).abs()


def cs_covariance(d: int, rho: float) -> torch.Tensor:
    """
    Compound symmetry covariance: 1 on the diagonal, rho everywhere else.
    """
    cov = torch.full((d, d), rho, dtype=constants.DTYPE)
    cov.fill_diagonal_(1.0)
    return cov


# designs and responses
# ---

def gaussian_design(
        n: int, d: int, cov: Optional[torch.Tensor],
        generator: torch.Generator) -> torch.Tensor:
    """
    Returns 2d (N x D) matrix with rows drawn from N(0, cov). cov=None means
    identity.
    """
    z = torch.randn(n, d, generator=generator, dtype=constants.DTYPE)
    if cov is None:
        return z
    # if L L^T = cov then rows of z L^T have covariance cov
    chol = torch.linalg.cholesky(cov.to(constants.DTYPE))
    return z.matmul(chol.t())


def sparse_beta(d: int, nonzero: int, value: float = 1.0) -> torch.Tensor:
    """
    First `nonzero` coefficients equal `value`, the rest 0.
    """
    if not 0 <= nonzero <= d:
        raise ValueError('nonzero ({}) must be in [0, {}]'.format(nonzero, d))
    beta = torch.zeros(d, dtype=constants.DTYPE)
    beta[:nonzero] = value
    return beta


def linear_data(
        n: int, beta: torch.Tensor, sigma: float, cov: Optional[torch.Tensor],
        generator: torch.Generator) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    y = X beta + eps, eps ~ N(0, sigma^2).

    Returns:
        x: 2d (N x D), y: 1d (N)
    """
    d, = beta.size()
    x = gaussian_design(n, d, cov, generator)
    eps = torch.randn(n, generator=generator, dtype=constants.DTYPE)
    return x, x.matmul(beta) + sigma * eps


def knn_example(n: int, generator: torch.Generator) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Four independent standard normal predictors and

        Y = X1 + 2 X2 - X3 + eps,   eps ~ N(0, 1)

    (X4 is pure noise.)
    """
    beta = torch.tensor([1.0, 2.0, -1.0, 0.0], dtype=constants.DTYPE)
    return linear_data(n, beta, 1.0, None, generator)


def default_curve(x: torch.Tensor) -> torch.Tensor:
    """
    A wiggly target for the spline experiments.
    """
    return torch.sin(2 * math.pi * x) + 0.5 * x


def curve_data(
        n: int, generator: torch.Generator, fn: CurveFn = default_curve,
        low: float = 0.0, high: float = 1.0,
        sigma: float = 0.3) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    x ~ U(low, high) (sorted), y = fn(x) + eps.

    Returns:
        x: 1d (N), y: 1d (N)
    """
    u = torch.rand(n, generator=generator, dtype=constants.DTYPE)
    x, _ = (low + (high - low) * u).sort()
    eps = torch.randn(n, generator=generator, dtype=constants.DTYPE)
    return x, fn(x) + sigma * eps


def logistic_data(
        n: int, beta: torch.Tensor, intercept: float,
        cov: Optional[torch.Tensor],
        generator: torch.Generator) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Labels are Bernoulli with P(y = 1 | x) = sigmoid(intercept + x^T beta).

    Returns:
        x: 2d (N x D), y: 1d (N) of 0 / 1 (int64)
    """
    d, = beta.size()
    x = gaussian_design(n, d, cov, generator)
    p = torch.sigmoid(intercept + x.matmul(beta))
    y = torch.bernoulli(p, generator=generator).long()
    return x, y


def gaussian_classes(
        n_per_class: Sequence[int], means: Sequence[torch.Tensor],
        covs: Sequence[torch.Tensor],
        generator: torch.Generator) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Class c gets n_per_class[c] draws from N(means[c], covs[c]). Labels are
    0..C-1, rows ordered by class.
    """
    if not len(n_per_class) == len(means) == len(covs):
        raise ValueError('Need one count, mean, and covariance per class')
    xs: List[torch.Tensor] = []
    ys: List[torch.Tensor] = []
    for c, (n, mu, cov) in enumerate(zip(n_per_class, means, covs)):
        d, = mu.size()
        xs.append(gaussian_design(n, d, cov, generator) + mu.to(constants.DTYPE))
        ys.append(torch.full((n,), c, dtype=torch.long))
    return torch.cat(xs), torch.cat(ys)
