"""
Polynomial and spline regression on one predictor.

Each basis function maps a 1d (N) tensor of x values to a 2d (N x M) design
matrix *without* a constant column; fit_basis(...) adds the intercept.
"""

# imports
# ---

# builtins
import argparse
from typing import Callable, Dict, Optional, Sequence, Tuple

# 3rd party
import torch

# local
import constants
import dataio
import regression
import simulate
import validation
import viewer


# types
# ---

BasisFn = Callable[[torch.Tensor], torch.Tensor]
# (training x, flexibility) -> basis function fixed by the training x
BasisFactory = Callable[[torch.Tensor, int], BasisFn]


# bases
# ---

def poly_basis(x: torch.Tensor, degree: int, orthogonal: bool = False) -> torch.Tensor:
    """
    Arguments:
        x: 1d (N)
        degree: highest power, >= 1
        orthogonal: if True, return orthonormal columns spanning the same space
            as [x, ..., x^degree] once an intercept is added (QR of the
            Vandermonde matrix). These only make sense at the x they were
            computed from.

    Returns:
        2d (N x degree)
    """
    if degree < 1:
        raise ValueError('degree ({}) must be >= 1'.format(degree))
    powers = torch.stack([x.pow(p) for p in range(degree + 1)], dim=1)
    if not orthogonal:
        return powers[:, 1:]
    q, _ = torch.linalg.qr(powers)
    return q[:, 1:]


def truncated_power_basis(x: torch.Tensor, knots: Sequence[float], degree: int = 3) -> torch.Tensor:
    """
    [x, ..., x^degree, (x - k_1)_+^degree, ..., (x - k_K)_+^degree]

    Returns:
        2d (N x degree + K)
    """
    cols = [x.pow(p) for p in range(1, degree + 1)]
    cols += [(x - k).clamp(min=0).pow(degree) for k in knots]
    return torch.stack(cols, dim=1)


def bspline_basis(
        x: torch.Tensor, knots: Sequence[float], degree: int = 3,
        boundary: Optional[Tuple[float, float]] = None,
        intercept: bool = False) -> torch.Tensor:
    """
    B-spline basis by the Cox-de Boor recursion, with the boundary knots
    repeated degree + 1 times.

    Arguments:
        x: 1d (N); values outside the boundary are clamped to it
        knots: interior knots, increasing and strictly inside the boundary
        degree: polynomial degree (3 is cubic)
        boundary: (low, high); defaults to (min(x), max(x))
        intercept: keep the first basis function. The full set sums to one at
            every x, so it is dropped by default to leave room for the
            intercept fit_basis(...) adds.

    Returns:
        2d (N x K + degree + 1) if intercept else (N x K + degree)
    """
    lo, hi = boundary if boundary is not None else (x.min().item(), x.max().item())
    if not lo < hi:
        raise ValueError('Boundary ({}, {}) is empty'.format(lo, hi))
    inner = [float(k) for k in knots]
    if any(k <= lo or k >= hi for k in inner) or inner != sorted(inner):
        raise ValueError('Knots {} must increase strictly inside ({}, {})'.format(inner, lo, hi))
    t = torch.tensor([lo] * (degree + 1) + inner + [hi] * (degree + 1), dtype=x.dtype, device=x.device)
    xc = x.clamp(lo, hi).unsqueeze(1)
    m = len(t)

    # degree 0: interval indicators. the right boundary belongs to the last
    # non-empty interval.
    b = ((t[:-1] <= xc) & (xc < t[1:])).to(x.dtype)
    last = len(inner) + degree
    b[:, last] = torch.where(xc.squeeze(1) == hi, torch.ones_like(b[:, last]), b[:, last])

    for q in range(1, degree + 1):
        n_funcs = m - 1 - q
        t_i, t_iq = t[:n_funcs], t[q:q + n_funcs]
        t_i1, t_iq1 = t[1:1 + n_funcs], t[q + 1:q + 1 + n_funcs]
        # 0 / 0 terms are 0: the matching lower order function is 0 there
        left_den = t_iq - t_i
        right_den = t_iq1 - t_i1
        left = torch.where(left_den > 0, (xc - t_i) / left_den.clamp(min=1e-300), torch.zeros_like(xc - t_i))
        right = torch.where(right_den > 0, (t_iq1 - xc) / right_den.clamp(min=1e-300), torch.zeros_like(xc - t_i))
        b = left * b[:, :n_funcs] + right * b[:, 1:1 + n_funcs]

    return b if intercept else b[:, 1:]


def natural_spline_basis(x: torch.Tensor, knots: Sequence[float]) -> torch.Tensor:
    """
    Natural cubic spline basis (cubic between knots, linear beyond the outer
    two), in the truncated power form

        N_1 = x,  N_{k+1} = d_k(x) - d_{K-1}(x)   for k = 1 .. K-2
        d_k(x) = ((x - k_k)_+^3 - (x - k_K)_+^3) / (k_K - k_k)

    Arguments:
        x: 1d (N)
        knots: K >= 2 increasing knots, including the two boundary knots

    Returns:
        2d (N x K - 1); the constant is left to the intercept
    """
    ks = [float(k) for k in knots]
    if len(ks) < 2:
        raise ValueError('Need at least 2 knots, got {}'.format(len(ks)))
    if any(b <= a for a, b in zip(ks, ks[1:])):
        raise ValueError('Knots {} must be strictly increasing'.format(ks))
    big_k = ks[-1]

    def d(k: float) -> torch.Tensor:
        return ((x - k).clamp(min=0).pow(3) - (x - big_k).clamp(min=0).pow(3)) / (big_k - k)

    d_last = d(ks[-2])
    cols = [x] + [d(k) - d_last for k in ks[:-2]]
    return torch.stack(cols, dim=1)


def quantile_knots(x: torch.Tensor, n_knots: int) -> torch.Tensor:
    """
    n_knots interior knots at evenly spaced quantiles of x.
    """
    if n_knots < 0:
        raise ValueError('n_knots ({}) must be >= 0'.format(n_knots))
    if n_knots == 0:
        return torch.zeros(0, dtype=x.dtype, device=x.device)
    probs = torch.arange(1, n_knots + 1, dtype=x.dtype, device=x.device) / (n_knots + 1)
    return torch.quantile(x, probs)


#
# factories: pick knots / degree from the training x and a flexibility (df)
#

def poly_factory(x_fit: torch.Tensor, degree: int) -> BasisFn:
    return lambda xs: poly_basis(xs, degree)


def bspline_factory(x_fit: torch.Tensor, df: int) -> BasisFn:
    """
    Cubic B-spline with df columns (df - 3 interior knots at quantiles), like
    R's bs(x, df).
    """
    if df < 3:
        raise ValueError('Cubic B-splines need df >= 3, got {}'.format(df))
    knots = quantile_knots(x_fit, df - 3).tolist()
    boundary = (x_fit.min().item(), x_fit.max().item())
    return lambda xs: bspline_basis(xs, knots, 3, boundary)


def natural_factory(x_fit: torch.Tensor, df: int) -> BasisFn:
    """
    Natural cubic spline with df columns (df + 1 knots at quantiles including
    min and max), like R's ns(x, df).
    """
    if df < 1:
        raise ValueError('Natural splines need df >= 1, got {}'.format(df))
    probs = torch.linspace(0, 1, df + 1, dtype=x_fit.dtype, device=x_fit.device)
    knots = torch.quantile(x_fit, probs).tolist()
    return lambda xs: natural_spline_basis(xs, knots)


#
# fitting
#

def fit_basis(basis: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
    """
    Least squares on the basis plus an intercept (the final weight).
    """
    return regression.ols_analytic(dataio.bias_tensor(basis), y)


def predict_basis(w: torch.Tensor, basis: torch.Tensor) -> torch.Tensor:
    return dataio.bias_tensor(basis).matmul(w)


def select_df_cv(
        x: torch.Tensor, y: torch.Tensor, dfs: Sequence[int],
        factory: BasisFactory, folds: int,
        generator: torch.Generator) -> Tuple[int, Dict[int, Tuple[float, float]]]:
    """
    Chooses the flexibility (degree or df) by K-fold cross-validation, with
    the same folds for every candidate.

    Returns:
        best df, map from df to (CV mean MSE, standard error)
    """
    seed = int(torch.randint(0, 2**31 - 1, (1,), generator=generator).item())
    scores = {}
    for df in dfs:
        def fit(xt: torch.Tensor, yt: torch.Tensor, df: int = df) -> Tuple[BasisFn, torch.Tensor]:
            basis_fn = factory(xt, df)
            return basis_fn, fit_basis(basis_fn(xt), yt)

        def pred(model: Tuple[BasisFn, torch.Tensor], xv: torch.Tensor) -> torch.Tensor:
            basis_fn, w = model
            return predict_basis(w, basis_fn(xv))

        scores[df] = validation.cross_val_error(
            x, y, fit, pred, validation.mse, folds,
            torch.Generator().manual_seed(seed))
    best = min(dfs, key=lambda df: scores[df][0])
    return best, scores


# script
# ---

def experiment(n: int = 200, folds: int = 10) -> None:
    """
    Polynomial vs cubic B-spline vs natural spline on a wiggly curve, each
    with CV-chosen flexibility.
    """
    print('splines.experiment :: start')
    gen = torch.Generator().manual_seed(constants.SEED)
    x, y = simulate.curve_data(n, gen)
    grid = torch.linspace(x.min().item(), x.max().item(), 200, dtype=constants.DTYPE)

    candidates = [
        ('Polynomial', poly_factory, list(range(1, 13))),
        ('Cubic spline', bspline_factory, list(range(3, 16))),
        ('Natural spline', natural_factory, list(range(1, 16))),
    ]
    fits = []
    for name, factory, dfs in candidates:
        best, scores = select_df_cv(x, y, dfs, factory, folds, gen)
        print('{}: CV chose {} (CV MSE {:.4f} +/- {:.4f})'.format(name, best, *scores[best]))
        viewer.plot_line(
            torch.tensor(dfs, dtype=torch.float64),
            torch.tensor([scores[df][0] for df in dfs]),
            [name], '{} CV error'.format(name),
            dict(xlabel='degree / df', ylabel='CV MSE'))
        basis_fn = factory(x, best)
        w = fit_basis(basis_fn(x), y)
        fits.append(('{} ({})'.format(name, best), predict_basis(w, basis_fn(grid))))

    viewer.plot_scatter(torch.stack([x, y], dim=1).float(), win='Curve data')
    viewer.plot_line(
        grid,
        torch.stack([simulate.default_curve(grid)] + [f for _, f in fits]),
        ['Truth'] + [name for name, _ in fits],
        'Spline fits',
        dict(xlabel='x', ylabel='y'),
    )
    print('splines.experiment :: finish')


def main() -> None:
    parser = argparse.ArgumentParser(description='Polynomial and spline regression.')
    parser.add_argument('--n', type=int, default=200)
    parser.add_argument('--folds', type=int, default=10)
    args = parser.parse_args()
    experiment(args.n, args.folds)


if __name__ == '__main__':
    main()
