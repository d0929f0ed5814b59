"""
Predictor subset selection for linear regression: exhaustive best subset,
forward stepwise, and backward stepwise, scored with Mallows' Cp, AIC, BIC, and
adjusted R^2.

Every candidate model includes an (unpenalized) intercept, which counts as one
parameter in the criteria.
"""

# imports
# ---

# builtins
import argparse
import itertools
import math
from typing import Dict, Optional, Sequence, Tuple, TypedDict

# 3rd party
import torch
from tqdm import tqdm

# local
import constants
import dataio
import regression
import simulate
import viewer


# types
# ---

class SubsetFit(TypedDict):
    features: Tuple[int, ...]
    rss: float
Path = Dict[int, SubsetFit]
Scores = Dict[str, Dict[int, float]]

# 2^20 least squares fits is already slow; past that use the stepwise searches
MAX_EXHAUSTIVE = 20

CRITERIA = ['cp', 'aic', 'bic', 'adjr2']


# lib functions
# ---

def fit_rss(x: torch.Tensor, y: torch.Tensor, features: Sequence[int]) -> float:
    """
    Residual sum of squares of least squares on columns `features` of x, plus
    an intercept.
    """
    cols = torch.tensor(list(features), dtype=torch.long, device=x.device)
    design = dataio.bias_tensor(x.index_select(1, cols))
    w = regression.ols_analytic(design, y)
    return (y.to(design.dtype) - design.matmul(w)).pow(2).sum().item()


def _max_size(x: torch.Tensor, max_size: Optional[int]) -> int:
    n, d = x.size()
    # need at least one residual degree of freedom beyond the intercept
    limit = min(d, n - 2)
    if max_size is None:
        return limit
    if max_size < 0 or max_size > limit:
        raise ValueError('max_size ({}) must be in [0, {}]'.format(max_size, limit))
    return max_size


def best_subset(x: torch.Tensor, y: torch.Tensor, max_size: Optional[int] = None) -> Path:
    """
    For every model size up to max_size, the subset of columns with the lowest
    RSS among all subsets of that size.

    Returns:
        map from size to its best SubsetFit
    """
    n, d = x.size()
    if d > MAX_EXHAUSTIVE:
        raise ValueError('Exhaustive search over {} columns; use forward or '
            'backward selection past {}'.format(d, MAX_EXHAUSTIVE))
    top = _max_size(x, max_size)
    path: Path = {}
    for size in tqdm(range(top + 1), desc='subset size'):
        # min keeps the first of equal RSS fits, in combinations(...) order
        rss, features = min(
            ((fit_rss(x, y, f), f) for f in itertools.combinations(range(d), size)),
            key=lambda fit: fit[0])
        path[size] = {'features': features, 'rss': rss}
    return path


def forward_selection(x: torch.Tensor, y: torch.Tensor, max_size: Optional[int] = None) -> Path:
    """
    Starts from the intercept-only model and greedily adds whichever column
    lowers the RSS most.

    Returns:
        map from size to the SubsetFit reached at that size
    """
    n, d = x.size()
    top = _max_size(x, max_size)
    current: Tuple[int, ...] = ()
    path: Path = {0: {'features': current, 'rss': fit_rss(x, y, current)}}
    for size in range(1, top + 1):
        candidates = [
            (fit_rss(x, y, current + (j,)), j)
            for j in range(d) if j not in current
        ]
        rss, j = min(candidates)
        current = tuple(sorted(current + (j,)))
        path[size] = {'features': current, 'rss': rss}
    return path


def backward_elimination(x: torch.Tensor, y: torch.Tensor) -> Path:
    """
    Starts from the full model and greedily drops whichever column raises the
    RSS least. Needs more rows than columns + 1.

    Returns:
        map from size to the SubsetFit reached at that size
    """
    n, d = x.size()
    if n <= d + 1:
        raise ValueError('Backward elimination needs n ({}) > d + 1 ({})'.format(n, d + 1))
    current = tuple(range(d))
    path: Path = {d: {'features': current, 'rss': fit_rss(x, y, current)}}
    for size in range(d - 1, -1, -1):
        candidates = [
            (fit_rss(x, y, tuple(f for f in current if f != j)), j)
            for j in current
        ]
        rss, j = min(candidates)
        current = tuple(f for f in current if f != j)
        path[size] = {'features': current, 'rss': rss}
    return path


#
# criteria. p is the number of parameters including the intercept.
#

# exact fits (RSS 0) are scored as if their RSS were this small, which keeps
# the log and the Cp ratio finite
RSS_FLOOR = 1e-12


def mallows_cp(rss: float, n: int, p: int, sigma2: float) -> float:
    """
    RSS / sigma^2 + 2p - n, with sigma^2 estimated from the full model.
    """
    return max(rss, RSS_FLOOR) / max(sigma2, RSS_FLOOR) + 2*p - n


def aic(rss: float, n: int, p: int) -> float:
    """
    Gaussian AIC up to a constant: n log(RSS / n) + 2p.
    """
    return n * math.log(max(rss, RSS_FLOOR) / n) + 2*p


def bic(rss: float, n: int, p: int) -> float:
    """
    Gaussian BIC up to a constant: n log(RSS / n) + p log(n).
    """
    return n * math.log(max(rss, RSS_FLOOR) / n) + p * math.log(n)


def adjusted_r2(rss: float, tss: float, n: int, p: int) -> float:
    """
    1 - (RSS / (n - p)) / (TSS / (n - 1)).
    """
    return 1 - (rss / (n - p)) / (tss / (n - 1))


def criteria(path: Path, x: torch.Tensor, y: torch.Tensor) -> Scores:
    """
    Scores every model on the path with every criterion.
    Raises ValueError for a constant y.

    Returns:
        map from criterion name ('cp', 'aic', 'bic', 'adjr2') to map from size
        to score
    """
    n, d = x.size()
    if n <= d + 1:
        raise ValueError('Need n ({}) > d + 1 ({}) to estimate sigma^2'.format(n, d + 1))
    sigma2 = fit_rss(x, y, range(d)) / (n - d - 1)
    yf = y.to(x.dtype)
    tss = (yf - yf.mean()).pow(2).sum().item()
    if tss == 0.0:
        raise ValueError('y is constant; adjusted R^2 is undefined')
    scores: Scores = {c: {} for c in CRITERIA}
    for size, fit in path.items():
        p = size + 1
        rss = fit['rss']
        scores['cp'][size] = mallows_cp(rss, n, p, sigma2)
        scores['aic'][size] = aic(rss, n, p)
        scores['bic'][size] = bic(rss, n, p)
        scores['adjr2'][size] = adjusted_r2(rss, tss, n, p)
    return scores


def choose(path: Path, scores: Scores, criterion: str) -> SubsetFit:
    """
    Returns the model on the path that wins under criterion: the lowest score
    for Cp / AIC / BIC, the highest for adjusted R^2. Ties go to the smaller
    model.
    """
    if criterion not in CRITERIA:
        raise ValueError('Unknown criterion {}; want one of {}'.format(criterion, CRITERIA))
    by_size = scores[criterion]
    sizes = sorted(by_size)
    if criterion == 'adjr2':
        size = max(sizes, key=lambda s: (by_size[s], -s))
    else:
        size = min(sizes, key=lambda s: (by_size[s], s))
    return path[size]


# script
# ---

def experiment(n: int = 200, d: int = 10, rho: float = 0.5) -> None:
    """
    Sparse truth, correlated design; compare the three searches under every
    criterion.
    """
    print('subset.experiment :: start')
    gen = torch.Generator().manual_seed(constants.SEED)
    beta = torch.zeros(d, dtype=constants.DTYPE)
    beta[:4] = torch.tensor([3.0, -2.0, 1.5, 1.0], dtype=constants.DTYPE)
    x, y = simulate.linear_data(n, beta, 2.0, simulate.ar_covariance(d, rho), gen)
    truth = tuple(j for j in range(d) if beta[j] != 0)
    print('true features: {}'.format(truth))

    searches = [
        ('best subset', best_subset(x, y)),
        ('forward', forward_selection(x, y)),
        ('backward', backward_elimination(x, y)),
    ]
    for name, path in searches:
        scores = criteria(path, x, y)
        for c in CRITERIA:
            fit = choose(path, scores, c)
            print('{} / {}: {} (RSS {:.2f})'.format(name, c, fit['features'], fit['rss']))

    # criterion curves for best subset
    path = searches[0][1]
    scores = criteria(path, x, y)
    sizes = sorted(path)
    for c in CRITERIA:
        viewer.plot_line(
            torch.tensor(sizes, dtype=torch.float64),
            torch.tensor([scores[c][s] for s in sizes]),
            [c],
            'Best subset: {}'.format(c),
            dict(xlabel='number of predictors', ylabel=c),
        )
    print('subset.experiment :: finish')


def main() -> None:
    parser = argparse.ArgumentParser(description='Subset selection experiment.')
    parser.add_argument('--n', type=int, default=200)
    parser.add_argument('--d', type=int, default=10)
    parser.add_argument('--rho', type=float, default=0.5)
    args = parser.parse_args()
    experiment(args.n, args.d, args.rho)


if __name__ == '__main__':
    main()
