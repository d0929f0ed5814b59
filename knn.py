"""
k-nearest-neighbors regression and classification, plus the usual studies of
how k trades bias for variance.
"""

# imports
# ---

# builtins
import argparse
from collections import Counter
import math
from typing import Callable, Dict, List, Sequence, Tuple

# 3rd party
import torch
from tqdm import tqdm

# local
import constants
import dataio
import simulate
import validation
import viewer


# types
# ---

TargetFn = Callable[[torch.Tensor], torch.Tensor]
ErrorPath = Dict[int, Tuple[float, float]]

# how many query rows to compute distances for at once
BATCH = 256

WEIGHTINGS = ['uniform', 'distance', 'kernel']


# lib functions
# ---

def sq_dists(a: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
    """
    Arguments:
        a: 2d (M x D)
        b: 2d (N x D)

    Returns:
        2d (M x N) squared euclidean distances between every row of a and
        every row of b
    """
    # computed from explicit differences rather than the |a|^2 + |b|^2 - 2ab
    # expansion so that duplicate points are exactly distance 0.
    return (a.unsqueeze(1) - b.unsqueeze(0)).pow(2).sum(2)


def neighbors(
        x_train: torch.Tensor, x_query: torch.Tensor,
        k: int) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Finds the k nearest training rows for every query row. Ties in distance are
    broken by lower training index.

    Arguments:
        x_train: 2d (N x D)
        x_query: 2d (Q x D)
        k: number of neighbors, in [1, N]

    Returns:
        idx: 2d (Q x k) training indices, nearest first
        dists: 2d (Q x k) euclidean distances, matching idx
    """
    n = len(x_train)
    if k < 1 or k > n:
        raise ValueError('k ({}) must be in [1, {}]'.format(k, n))
    idxs, dists = [], []
    for start in range(0, len(x_query), BATCH):
        d2 = sq_dists(x_query[start:start + BATCH], x_train)
        # stable sort keeps lower indices first among equal distances
        sorted_d2, order = torch.sort(d2, dim=1, stable=True)
        idxs.append(order[:, :k])
        dists.append(sorted_d2[:, :k].sqrt())
    return torch.cat(idxs), torch.cat(dists)


def knn_regress(
        x_train: torch.Tensor, y_train: torch.Tensor, x_query: torch.Tensor,
        k: int, weighting: str = 'uniform') -> torch.Tensor:
    """
    Predicts each query point from the labels of its k nearest training points.

    Arguments:
        x_train: 2d (N x D)
        y_train: 1d (N)
        x_query: 2d (Q x D)
        k: number of neighbors
        weighting: how neighbors are combined
            'uniform': plain average
            'distance': weighted by 1/distance; a query that coincides with
                training points takes the average of those points
            'kernel': Epanechnikov weights, bandwidth set by the distance to
                the (k+1)-th neighbor (needs k < N)

    Returns:
        1d (Q) predictions
    """
    if weighting not in WEIGHTINGS:
        raise ValueError('Unknown weighting {}; want one of {}'.format(weighting, WEIGHTINGS))
    y = y_train.to(x_train.dtype)

    if weighting == 'uniform':
        idx, _ = neighbors(x_train, x_query, k)
        return y[idx].mean(1)

    if weighting == 'distance':
        idx, dists = neighbors(x_train, x_query, k)
        exact = dists == 0
        has_exact = exact.any(1, keepdim=True)
        weights = torch.where(
            has_exact, exact.to(y.dtype), 1.0 / dists.clamp(min=1e-300))
        return (weights * y[idx]).sum(1) / weights.sum(1)

    # kernel
    if k >= len(x_train):
        raise ValueError('kernel weighting needs k ({}) < N ({})'.format(k, len(x_train)))
    idx, dists = neighbors(x_train, x_query, k + 1)
    h = dists[:, k:k + 1]
    idx, dists = idx[:, :k], dists[:, :k]
    u = torch.where(h > 0, dists / h.clamp(min=1e-300), torch.zeros_like(dists))
    weights = (1 - u.pow(2)).clamp(min=0)
    # every neighbor at the bandwidth (ties) -> fall back to uniform
    flat = weights.sum(1, keepdim=True) == 0
    weights = torch.where(flat, torch.ones_like(weights), weights)
    return (weights * y[idx]).sum(1) / weights.sum(1)


def knn_classify(
        x_train: torch.Tensor, y_train: torch.Tensor, x_query: torch.Tensor,
        k: int) -> torch.Tensor:
    """
    Majority vote among the k nearest neighbors. When several classes tie for
    the most votes, the class of the nearest of the tied neighbors wins.

    Returns:
        1d (Q) predicted labels (int64)
    """
    idx, _ = neighbors(x_train, x_query, k)
    votes = y_train[idx].tolist()
    preds = []
    for row in votes:
        counts = Counter(row)
        top = max(counts.values())
        # row is ordered nearest first
        preds.append(next(label for label in row if counts[label] == top))
    return torch.tensor(preds, dtype=torch.long, device=x_query.device)


def degrees_of_freedom(n: int, k: int) -> float:
    """
    Effective degrees of freedom of k-NN regression on n points: n / k.
    """
    return n / k


def max_cv_k(n: int, folds: int) -> int:
    """
    Largest k usable in K-fold CV on n rows: the training size of the fold
    that holds out the most rows.
    """
    return n - math.ceil(n / folds)


def _check_ks(ks: Sequence[int], limit: int) -> None:
    if len(ks) == 0:
        raise ValueError('Need at least one k')
    if min(ks) < 1 or max(ks) > limit:
        raise ValueError('Every k must be in [1, {}]; got [{}, {}]'.format(
            limit, min(ks), max(ks)))


def error_path(
        x_train: torch.Tensor, y_train: torch.Tensor, x_test: torch.Tensor,
        y_test: torch.Tensor, ks: Sequence[int]) -> ErrorPath:
    """
    Returns map from k to (train MSE, test MSE) for uniform k-NN regression.
    """
    _check_ks(ks, len(x_train))
    path = {}
    for k in tqdm(ks, desc='k'):
        train_mse = validation.mse(knn_regress(x_train, y_train, x_train, k), y_train)
        test_mse = validation.mse(knn_regress(x_train, y_train, x_test, k), y_test)
        path[k] = (train_mse, test_mse)
    return path


def select_k_cv(
        x: torch.Tensor, y: torch.Tensor, ks: Sequence[int], folds: int,
        generator: torch.Generator) -> Tuple[int, Dict[int, Tuple[float, float]]]:
    """
    Chooses k by K-fold cross-validation. Every k uses the same folds, so every
    k must fit in the smallest fold's training rows (see max_cv_k(...)).

    Returns:
        best k, map from k to (CV mean MSE, standard error)
    """
    _check_ks(ks, max_cv_k(len(x), folds))
    seed = int(torch.randint(0, 2**31 - 1, (1,), generator=generator).item())
    scores = {}
    for k in ks:
        fold_gen = torch.Generator().manual_seed(seed)
        scores[k] = validation.cross_val_error(
            x, y,
            lambda xt, yt: (xt, yt),
            lambda model, xv, k=k: knn_regress(model[0], model[1], xv, k),
            validation.mse, folds, fold_gen)
    best = min(ks, key=lambda k: scores[k][0])
    return best, scores


def bias_variance(
        x0: torch.Tensor, fn: TargetFn, ks: Sequence[int], n: int,
        sigma: float, n_sims: int,
        generator: torch.Generator) -> Dict[int, Tuple[float, float, float]]:
    """
    Monte-Carlo bias / variance of k-NN at a single target point.

    Each simulation draws n training points x ~ N(0, I), y = fn(x) + N(0,
    sigma^2), and predicts at x0 for every k.

    Arguments:
        x0: 1d (D) target point
        fn: true regression function, 2d (N x D) -> 1d (N)
        ks: neighbor counts
        n: training set size per simulation
        sigma: noise standard deviation
        n_sims: number of simulated training sets

    Returns:
        map from k to (squared bias, variance, expected test error at x0)
    """
    d, = x0.size()
    query = x0.view(1, d).to(constants.DTYPE)
    truth = fn(query).item()
    preds: Dict[int, List[float]] = {k: [] for k in ks}
    for _ in tqdm(range(n_sims), desc='simulations'):
        x = simulate.gaussian_design(n, d, None, generator)
        y = fn(x) + sigma * torch.randn(n, generator=generator, dtype=constants.DTYPE)
        for k in ks:
            preds[k].append(knn_regress(x, y, query, k).item())
    result = {}
    for k in ks:
        p = torch.tensor(preds[k], dtype=torch.float64)
        bias2 = (p.mean().item() - truth) ** 2
        var = p.var(unbiased=False).item()
        result[k] = (bias2, var, sigma ** 2 + bias2 + var)
    return result


def linear_target(x: torch.Tensor) -> torch.Tensor:
    """
    The mean function of simulate.knn_example(...): X1 + 2 X2 - X3.
    """
    return x[:, 0] + 2 * x[:, 1] - x[:, 2]


# script
# ---

def experiment(
        n: int = 1000, n_train: int = 500, max_k: int = 100,
        n_sims: int = 200) -> None:
    """
    Train / test error against degrees of freedom, the best k, CV choice of k,
    weighting variants, and the bias-variance picture at one point.
    """
    print('knn.experiment :: start')
    gen = torch.Generator().manual_seed(constants.SEED)
    x, y = simulate.knn_example(n, gen)
    x_train, y_train, x_test, y_test = dataio.head_split(x, y, n_train)

    for weighting in WEIGHTINGS:
        y_hat = knn_regress(x_train, y_train, x_test, 5, weighting)
        print('k = 5 ({}) test MSE: {:.4f}'.format(weighting, validation.mse(y_hat, y_test)))

    ks = list(range(1, min(max_k, n_train) + 1))
    if len(ks) < max_k:
        print('Capping max k at n_train ({})'.format(n_train))
    path = error_path(x_train, y_train, x_test, y_test, ks)
    best_k = min(ks, key=lambda k: path[k][1])
    print('best k: {}, df: {:.2f}, test MSE: {:.4f}'.format(
        best_k, degrees_of_freedom(n_train, best_k), path[best_k][1]))

    # CV folds train on fewer rows, so the largest ks drop out
    cv_ks = [k for k in ks if k <= max_cv_k(n_train, 5)]
    cv_k, _ = select_k_cv(x_train, y_train, cv_ks, 5, gen)
    print('5-fold CV k: {}, df: {:.2f}, test MSE: {:.4f}'.format(
        cv_k, degrees_of_freedom(n_train, cv_k), path[cv_k][1]))

    # plot against df, which increases as k decreases
    by_df = sorted(ks, key=lambda k: degrees_of_freedom(n_train, k))
    viewer.plot_line(
        torch.tensor([degrees_of_freedom(n_train, k) for k in by_df]),
        torch.tensor([
            [path[k][0] for k in by_df],
            [path[k][1] for k in by_df],
        ]),
        ['Train', 'Test'],
        'kNN error vs df',
        dict(xlabel='degrees of freedom (n / k)', ylabel='MSE', xtype='log'),
    )

    bv_ks = [k for k in [1, 2, 5, 10, 20, 50, 100] if k <= n_train]
    x0 = torch.full((4,), 0.5, dtype=constants.DTYPE)
    bv = bias_variance(x0, linear_target, bv_ks, n_train, 1.0, n_sims, gen)
    for k in bv_ks:
        print('k = {}: bias^2 {:.4f}, variance {:.4f}, error {:.4f}'.format(k, *bv[k]))
    viewer.plot_line(
        torch.tensor(bv_ks, dtype=torch.float64),
        torch.tensor([[bv[k][i] for k in bv_ks] for i in range(3)]),
        ['Squared bias', 'Variance', 'Expected test error'],
        'kNN bias-variance at x0',
        dict(xlabel='k', xtype='log'),
    )
    print('knn.experiment :: finish')


def main() -> None:
    parser = argparse.ArgumentParser(description='k-NN experiments.')
    parser.add_argument('--n', type=int, default=1000)
    parser.add_argument('--n-train', type=int, default=500)
    parser.add_argument('--max-k', type=int, default=100)
    parser.add_argument('--sims', type=int, default=200)
    args = parser.parse_args()
    experiment(args.n, args.n_train, args.max_k, args.sims)


if __name__ == '__main__':
    main()
