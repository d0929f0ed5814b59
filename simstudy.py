"""
Ridge / lasso simulation study: how do least squares, ridge, lasso, and elastic
net compare in test error (and the lasso in feature recovery) as the design
gets more correlated?

Every fit standardizes X with training statistics and centers y, so the
penalty treats features alike and the intercept is never penalized.
"""

# imports
# ---

# builtins
import argparse
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypedDict

# 3rd party
import torch
from tqdm import tqdm

# local
import constants
import dataio
import normalization
import regression
import simulate
import validation
import viewer


# types
# ---

class Scenario(TypedDict):
    n_train: int
    n_test: int
    d: int
    nonzero: int
    beta_value: float
    sigma: float
    rho: float
    cov_kind: str  # 'iid', 'ar', or 'cs'
class StudyResults(TypedDict):
    mse: Dict[str, List[float]]
    true_pos: List[int]
    false_pos: List[int]
Predictor = Callable[[torch.Tensor], torch.Tensor]
# (standardized x, centered y, lambdas) -> (L x D) weights, one row per lambda
PathFn = Callable[[torch.Tensor, torch.Tensor, Sequence[float]], torch.Tensor]

COV_KINDS = ['iid', 'ar', 'cs']

# each coordinate descent solve runs silently until converged
CD_SETTINGS: regression.CDSettings = {'epochs': 1000, 'report_interval': 0, 'tol': 1e-7}


# lib functions
# ---

def covariance(scenario: Scenario) -> Optional[torch.Tensor]:
    kind = scenario['cov_kind']
    if kind not in COV_KINDS:
        raise ValueError('Unknown cov_kind {}; want one of {}'.format(kind, COV_KINDS))
    if kind == 'ar':
        return simulate.ar_covariance(scenario['d'], scenario['rho'])
    if kind == 'cs':
        return simulate.cs_covariance(scenario['d'], scenario['rho'])
    return None


def standardized_predictor(
        w: torch.Tensor, means: torch.Tensor, stds: torch.Tensor,
        y_mean: torch.Tensor) -> Predictor:
    """
    Turns weights fit on standardized x / centered y into a predictor on raw x.
    """
    return lambda x: normalization.normalize(x, means, stds).matmul(w) + y_mean


def ridge_path(x: torch.Tensor, y: torch.Tensor, lambdas: Sequence[float]) -> torch.Tensor:
    return torch.stack([regression.ridge_analytic(x, y, float(l)) for l in lambdas])


def enet_path_fn(alpha: float) -> PathFn:
    def path(x: torch.Tensor, y: torch.Tensor, lambdas: Sequence[float]) -> torch.Tensor:
        # lasso_path solves largest lambda first; callers pass lambdas descending
        return regression.lasso_path(x, y, lambdas, CD_SETTINGS, alpha)
    return path


def cv_path(
        x: torch.Tensor, y: torch.Tensor, lambdas: Sequence[float],
        path_fn: PathFn, folds: int,
        generator: torch.Generator) -> Tuple[List[float], List[float]]:
    """
    K-fold CV error of a whole regularization path. Each fold standardizes its
    own training rows.

    Arguments:
        lambdas: decreasing regularization strengths
        path_fn: computes weights for every lambda at once

    Returns:
        CV mean MSE per lambda, standard error per lambda
    """
    per_fold = []
    for train_idx, val_idx in validation.kfold(len(x), folds, generator):
        train_idx, val_idx = train_idx.to(x.device), val_idx.to(x.device)
        (xs, xv), (means, stds) = normalization.standardize(x[train_idx], x[val_idx])
        yc, y_mean = normalization.center(y[train_idx])
        ws = path_fn(xs, yc, lambdas)                          # (L x D)
        preds = xv.matmul(ws.t()) + y_mean                     # (V x L)
        per_fold.append((preds - y[val_idx].unsqueeze(1)).pow(2).mean(0))
    errs = torch.stack(per_fold)                               # (K x L)
    means_ = errs.mean(0)
    ses = errs.std(0) / folds ** 0.5
    return means_.tolist(), ses.tolist()


def fit_ols(x: torch.Tensor, y: torch.Tensor) -> Tuple[Predictor, torch.Tensor]:
    """
    Least squares with intercept.

    Returns:
        predictor on raw x, weights on standardized x
    """
    (xs,), (means, stds) = normalization.standardize(x)
    yc, y_mean = normalization.center(y)
    w = regression.ols_analytic(xs, yc)
    return standardized_predictor(w, means, stds, y_mean), w


def choose_lambda(
        lambdas: Sequence[float], means: Sequence[float], ses: Sequence[float],
        one_se: bool = False) -> float:
    """
    The lambda with the lowest CV error, or with one_se the largest lambda
    within one standard error of it.
    """
    if one_se:
        return validation.one_se_rule(lambdas, means, ses, lambda a, b: a > b)
    return lambdas[min(range(len(lambdas)), key=lambda i: means[i])]


def refit(
        x: torch.Tensor, y: torch.Tensor, lambdas: Sequence[float], lmb: float,
        path_fn: PathFn) -> Tuple[Predictor, torch.Tensor]:
    """
    Fits all of x at lmb, running the path down from the largest lambda so
    warm starts carry over.

    Returns:
        predictor on raw x, weights on standardized x
    """
    (xs,), (mu, sd) = normalization.standardize(x)
    yc, y_mean = normalization.center(y)
    ws = path_fn(xs, yc, [l for l in lambdas if l >= lmb])
    w = ws[-1]
    return standardized_predictor(w, mu, sd, y_mean), w


def fit_penalized_cv(
        x: torch.Tensor, y: torch.Tensor, lambdas: Sequence[float],
        path_fn: PathFn, folds: int, generator: torch.Generator,
        one_se: bool = False) -> Tuple[Predictor, torch.Tensor, float]:
    """
    Chooses lambda by CV, then refits on all of x.

    Returns:
        predictor on raw x, weights on standardized x, chosen lambda
    """
    lambdas = sorted([float(l) for l in lambdas], reverse=True)
    means, ses = cv_path(x, y, lambdas, path_fn, folds, generator)
    lmb = choose_lambda(lambdas, means, ses, one_se)
    predictor, w = refit(x, y, lambdas, lmb, path_fn)
    return predictor, w, lmb


def lasso_lambdas(x: torch.Tensor, y: torch.Tensor, alpha: float = 1.0, n: int = 50) -> List[float]:
    """
    Decreasing grid from the smallest lambda that zeros every weight (for the
    standardized, centered data) down by a factor of 1000.
    """
    (xs,), _ = normalization.standardize(x)
    yc, _ = normalization.center(y)
    return regression.lambda_grid(regression.lasso_max_lambda(xs, yc) / alpha, n).tolist()


def ridge_lambdas(n: int = 50) -> List[float]:
    return regression.lambda_grid(10.0, n, 1e-5).tolist()


def run(
        scenario: Scenario, n_sims: int, generator: torch.Generator,
        folds: int = 5) -> StudyResults:
    """
    Runs n_sims replicates of the scenario. Each replicate draws fresh train
    and test sets and fits every method on train.

    Returns:
        per-method test MSEs, and per-replicate lasso true / false positives
    """
    d = scenario['d']
    beta = simulate.sparse_beta(d, scenario['nonzero'], scenario['beta_value'])
    truth = set(range(scenario['nonzero']))
    cov = covariance(scenario)
    n = scenario['n_train'] + scenario['n_test']
    results: StudyResults = {'mse': {}, 'true_pos': [], 'false_pos': []}

    def record(method: str, predictor: Predictor) -> None:
        results['mse'].setdefault(method, []).append(
            validation.mse(predictor(x_test), y_test))

    for _ in tqdm(range(n_sims), desc='replicates'):
        x, y = simulate.linear_data(n, beta, scenario['sigma'], cov, generator)
        x_train, y_train, x_test, y_test = dataio.head_split(x, y, scenario['n_train'])

        predictor, _ = fit_ols(x_train, y_train)
        record('OLS', predictor)

        predictor, _ = fit_ols(x_train[:, :scenario['nonzero']], y_train)
        record('Oracle', lambda xs, p=predictor: p(xs[:, :scenario['nonzero']]))

        predictor, _, _ = fit_penalized_cv(
            x_train, y_train, ridge_lambdas(), ridge_path, folds, generator)
        record('Ridge', predictor)

        # one CV run serves both lasso choices
        grid = lasso_lambdas(x_train, y_train)
        lasso = enet_path_fn(1.0)
        means, ses = cv_path(x_train, y_train, grid, lasso, folds, generator)
        predictor, w = refit(x_train, y_train, grid, choose_lambda(grid, means, ses), lasso)
        record('Lasso', predictor)
        chosen = set((w != 0).nonzero().view(-1).tolist())
        results['true_pos'].append(len(chosen & truth))
        results['false_pos'].append(len(chosen - truth))

        predictor, _ = refit(
            x_train, y_train, grid, choose_lambda(grid, means, ses, one_se=True), lasso)
        record('Lasso 1se', predictor)

        predictor, _, _ = fit_penalized_cv(
            x_train, y_train, lasso_lambdas(x_train, y_train, 0.5), enet_path_fn(0.5),
            folds, generator)
        record('Elastic net', predictor)

    return results


def summarize(results: StudyResults) -> Dict[str, Tuple[float, float]]:
    """
    Returns map from method to (mean test MSE, standard error).
    """
    summary = {}
    for method, errs in results['mse'].items():
        t = torch.tensor(errs, dtype=torch.float64)
        se = (t.std() / len(errs) ** 0.5).item() if len(errs) > 1 else 0.0
        summary[method] = (t.mean().item(), se)
    return summary


# script
# ---

SCENARIOS: Dict[str, Scenario] = {
    'independent': {
        'n_train': 100, 'n_test': 500, 'd': 20, 'nonzero': 5, 'beta_value': 1.0,
        'sigma': 2.0, 'rho': 0.0, 'cov_kind': 'iid',
    },
    'correlated': {
        'n_train': 100, 'n_test': 500, 'd': 20, 'nonzero': 5, 'beta_value': 1.0,
        'sigma': 2.0, 'rho': 0.8, 'cov_kind': 'cs',
    },
}


def experiment(n_sims: int = 50) -> None:
    print('simstudy.experiment :: start')
    gen = torch.Generator().manual_seed(constants.SEED)
    for name, scenario in SCENARIOS.items():
        print('scenario: {}'.format(name))
        results = run(scenario, n_sims, gen)
        for method, (mean, se) in sorted(summarize(results).items()):
            print('\t {}: test MSE {:.4f} (se {:.4f})'.format(method, mean, se))
        print('\t lasso: avg true positives {:.2f} / {}, avg false positives {:.2f}'.format(
            sum(results['true_pos']) / n_sims, scenario['nonzero'],
            sum(results['false_pos']) / n_sims))
        viewer.plot_jitter(results['mse'], 'Test MSE ({})'.format(name))
    print('simstudy.experiment :: finish')


def main() -> None:
    parser = argparse.ArgumentParser(description='Ridge / lasso simulation study.')
    parser.add_argument('--sims', type=int, default=50)
    args = parser.parse_args()
    experiment(args.sims)


if __name__ == '__main__':
    main()
