"""
Gaussian generative classifiers: linear discriminant analysis (shared
covariance), quadratic discriminant analysis (per-class covariance, optionally
shrunk toward the shared one), and Gaussian naive Bayes (per-class diagonal
covariance).

Each model has a fit function returning its parameters, and a scores function
returning per-class log posteriors up to a constant shared by all classes:

    delta_k(x) = log pi_k + log N(x; mu_k, Sigma_k)
"""

# imports
# ---

# builtins
import argparse
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypedDict

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

class ClassStats(TypedDict):
    classes: torch.Tensor  # (C) sorted labels
    counts: torch.Tensor   # (C)
    priors: torch.Tensor   # (C)
    means: torch.Tensor    # (C x D)
class LDAParams(TypedDict):
    stats: ClassStats
    cov: torch.Tensor      # (D x D)
    prec: torch.Tensor     # (D x D)
class QDAParams(TypedDict):
    stats: ClassStats
    covs: torch.Tensor     # (C x D x D)
    precs: torch.Tensor    # (C x D x D)
    logdets: torch.Tensor  # (C)
class NBParams(TypedDict):
    stats: ClassStats
    variances: torch.Tensor  # (C x D)
# scores function and the class labels its columns correspond to
Fitted = Tuple[Callable[[torch.Tensor], torch.Tensor], torch.Tensor]


# lib functions
# ---

def class_stats(x: torch.Tensor, y: torch.Tensor) -> ClassStats:
    """
    Per-class counts, priors (class frequencies), and means. Every class needs
    at least 2 rows.
    """
    if len(x) != len(y):
        raise ValueError('x has {} rows but y has {}'.format(len(x), len(y)))
    classes, counts = torch.unique(y, sorted=True, return_counts=True)
    small = classes[counts < 2].tolist()
    if len(small) > 0:
        raise ValueError('Classes {} have fewer than 2 rows'.format(small))
    means = torch.stack([x[y == c].mean(0) for c in classes])
    return {
        'classes': classes,
        'counts': counts,
        'priors': counts.to(x.dtype) / len(y),
        'means': means,
    }


def _scatter(x: torch.Tensor, mean: torch.Tensor) -> torch.Tensor:
    centered = x - mean
    return centered.t().matmul(centered)


def pooled_covariance(x: torch.Tensor, y: torch.Tensor, stats: ClassStats) -> torch.Tensor:
    """
    Within-class covariance: sum of per-class scatter matrices / (N - C).
    """
    n, d = x.size()
    c = len(stats['classes'])
    total = torch.zeros(d, d, dtype=x.dtype, device=x.device)
    for i, cls in enumerate(stats['classes']):
        total += _scatter(x[y == cls], stats['means'][i])
    return total / (n - c)


def lda_fit(x: torch.Tensor, y: torch.Tensor, reg: float = 0.0) -> LDAParams:
    """
    Arguments:
        x: 2d (N x D) features
        y: 1d (N) integer labels
        reg: added to the covariance diagonal

    Returns:
        LDA parameters. With reg = 0 a singular pooled covariance (e.g. from
        constant pixels) is inverted with the pseudoinverse.
    """
    n, d = x.size()
    stats = class_stats(x, y)
    cov = pooled_covariance(x, y, stats)
    cov = cov + reg * torch.eye(d, dtype=x.dtype, device=x.device)
    return {'stats': stats, 'cov': cov, 'prec': torch.linalg.pinv(cov, hermitian=True)}


def lda_scores(params: LDAParams, x: torch.Tensor) -> torch.Tensor:
    """
    delta_k(x) = x^T P mu_k - 1/2 mu_k^T P mu_k + log pi_k, with P the pooled
    precision.

    Returns:
        2d (N x C) scores
    """
    means = params['stats']['means']
    pm = params['prec'].matmul(means.t())        # (D x C)
    const = -0.5 * (means.t() * pm).sum(0)       # (C)
    return x.matmul(pm) + const + params['stats']['priors'].log()


def qda_fit(
        x: torch.Tensor, y: torch.Tensor, reg: float = 0.0,
        alpha: float = 0.0) -> QDAParams:
    """
    Arguments:
        x: 2d (N x D) features
        y: 1d (N) integer labels
        reg: added to every covariance diagonal
        alpha: regularized discriminant analysis mixing; each class covariance
            becomes (1 - alpha) Sigma_k + alpha Sigma_pooled, so alpha = 0 is
            QDA and alpha = 1 is LDA

    Returns:
        QDA parameters

    Raises ValueError when a covariance is not positive definite (try reg > 0).
    """
    if not 0.0 <= alpha <= 1.0:
        raise ValueError('alpha ({}) must be in [0, 1]'.format(alpha))
    n, d = x.size()
    stats = class_stats(x, y)
    pooled = pooled_covariance(x, y, stats) if alpha > 0 else None
    eye = torch.eye(d, dtype=x.dtype, device=x.device)
    covs = []
    for i, cls in enumerate(stats['classes']):
        cov = _scatter(x[y == cls], stats['means'][i]) / (stats['counts'][i] - 1)
        if pooled is not None:
            cov = (1 - alpha) * cov + alpha * pooled
        covs.append(cov + reg * eye)
    cov_t = torch.stack(covs)
    sign, logdets = torch.linalg.slogdet(cov_t)
    bad = stats['classes'][sign <= 0].tolist()
    if len(bad) > 0:
        raise ValueError('Covariance for classes {} is singular; use reg > 0'.format(bad))
    return {
        'stats': stats,
        'covs': cov_t,
        'precs': torch.linalg.inv(cov_t),
        'logdets': logdets,
    }


def qda_scores(params: QDAParams, x: torch.Tensor) -> torch.Tensor:
    """
    delta_k(x) = -1/2 log|Sigma_k| - 1/2 (x - mu_k)^T P_k (x - mu_k) + log pi_k

    Returns:
        2d (N x C) scores
    """
    stats = params['stats']
    cols = []
    for i in range(len(stats['classes'])):
        centered = x - stats['means'][i]
        maha = (centered.matmul(params['precs'][i]) * centered).sum(1)
        cols.append(-0.5 * params['logdets'][i] - 0.5 * maha)
    return torch.stack(cols, dim=1) + stats['priors'].log()


def nb_fit(x: torch.Tensor, y: torch.Tensor, var_smoothing: float = 1e-9) -> NBParams:
    """
    Arguments:
        x: 2d (N x D) features
        y: 1d (N) integer labels
        var_smoothing: fraction of the largest overall feature variance added
            to every per-class variance, so constant features don't divide by 0

    Returns:
        naive Bayes parameters
    """
    stats = class_stats(x, y)
    eps = var_smoothing * x.var(0, unbiased=False).max()
    variances = torch.stack([
        x[y == cls].var(0, unbiased=False) for cls in stats['classes']
    ]) + eps
    if (variances <= 0).any():
        raise ValueError('Zero variance feature; use var_smoothing > 0')
    return {'stats': stats, 'variances': variances}


def nb_scores(params: NBParams, x: torch.Tensor) -> torch.Tensor:
    """
    delta_k(x) = sum_j [ -1/2 log var_kj - (x_j - mu_kj)^2 / (2 var_kj) ] + log pi_k

    Returns:
        2d (N x C) scores
    """
    means = params['stats']['means']   # (C x D)
    inv_var = 1.0 / params['variances']  # (C x D)
    # sum_j (x_j - mu_kj)^2 / var_kj, expanded to avoid an N x C x D tensor
    maha = (
        x.pow(2).matmul(inv_var.t())
        - 2 * x.matmul((means * inv_var).t())
        + (means.pow(2) * inv_var).sum(1)
    )
    ll = -0.5 * (params['variances'].log().sum(1) + maha)
    return ll + params['stats']['priors'].log()


def predict(scores: torch.Tensor, classes: torch.Tensor) -> torch.Tensor:
    """
    Label of the highest scoring class for every row.
    """
    return classes[scores.argmax(1)]


def posteriors(scores: torch.Tensor) -> torch.Tensor:
    """
    Normalizes scores into class probabilities (softmax over classes).
    """
    return torch.softmax(scores, dim=1)


def indicator_fit(x: torch.Tensor, y: torch.Tensor, lmb: float) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Linear regression of an indicator (one-hot) response, with a bias column
    and ridge strength lmb. Baseline classifier for comparison.

    Returns:
        weights (D+1 x C), classes (C)
    """
    classes = torch.unique(y, sorted=True)
    onehot = dataio.labels_to_onehot(torch.searchsorted(classes, y), len(classes))
    w = regression.ridge_analytic(dataio.bias_tensor(x), onehot, lmb)
    return w, classes


def indicator_scores(w: torch.Tensor, x: torch.Tensor) -> torch.Tensor:
    return dataio.bias_tensor(x).matmul(w)


# script
# ---

def _fit_all(
        x: torch.Tensor, y: torch.Tensor, reg: float, alpha: float,
        var_smoothing: float, lmb: float) -> Dict[str, Fitted]:
    # method name -> (scores fn taking x, classes)
    lda = lda_fit(x, y, reg)
    qda = qda_fit(x, y, reg, alpha)
    nb = nb_fit(x, y, var_smoothing)
    w, classes = indicator_fit(x, y, lmb)
    onehot = dataio.labels_to_onehot(torch.searchsorted(classes, y), len(classes))
    regression.report(
        'Linear (train)', w, dataio.bias_tensor(x), onehot, lmb,
        regression.multiclass_eval, regression.ridge_loss)
    return {
        'LDA': (lambda xs: lda_scores(lda, xs), lda['stats']['classes']),
        'QDA': (lambda xs: qda_scores(qda, xs), qda['stats']['classes']),
        'NB': (lambda xs: nb_scores(nb, xs), nb['stats']['classes']),
        'Linear': (lambda xs: indicator_scores(w, xs), classes),
    }


def _evaluate(
        fitted: Dict[str, Fitted],
        splits: Sequence[Tuple[str, torch.Tensor, torch.Tensor]]) -> Dict[str, Dict[str, torch.Tensor]]:
    preds: Dict[str, Dict[str, torch.Tensor]] = {}
    for method, (scores_fn, classes) in fitted.items():
        preds[method] = {}
        for split, x, y in splits:
            pred = predict(scores_fn(x), classes)
            preds[method][split] = pred
            print('{} ({}) error: {:.4f}'.format(method, split, validation.error_rate(pred, y)))
    return preds


def digits(
        classes: Optional[List[int]] = None, max_rows: Optional[int] = None,
        reg: float = 0.1, alpha: float = 0.5, var_smoothing: float = 1e-2,
        lmb: float = 1e-3) -> None:
    """
    LDA vs QDA vs naive Bayes vs indicator linear regression on digits.

    Arguments:
        classes: only keep these digits (default: all)
        max_rows: only use the first max_rows training rows
        reg, alpha, var_smoothing, lmb: regularization for each model
    """
    print('discriminant.digits :: start')
    try:
        train_y, train_x = dataio.load_digits('train')
        val_y, val_x = dataio.load_digits('val')
    except FileNotFoundError as e:
        print('ERROR: {}. Run dataio.py --resplit and normalization.py first.'.format(e))
        return

    if classes is not None:
        train_y, train_x = dataio.select_classes(train_y, train_x, classes)
        val_y, val_x = dataio.select_classes(val_y, val_x, classes)
    if max_rows is not None:
        train_y, train_x = train_y[:max_rows], train_x[:max_rows]

    print('Moving data to {}...'.format(constants.DEVICE))
    train_x, train_y = train_x.to(constants.DEVICE), train_y.to(constants.DEVICE)
    val_x, val_y = val_x.to(constants.DEVICE), val_y.to(constants.DEVICE)

    print('Fitting on {} rows...'.format(len(train_y)))
    try:
        fitted = _fit_all(train_x, train_y, reg, alpha, var_smoothing, lmb)
    except ValueError as e:
        print('ERROR: {}. Use more rows (--max-rows) or fewer classes.'.format(e))
        return
    preds = _evaluate(fitted, [('train', train_x, train_y), ('val', val_x, val_y)])

    methods = sorted(preds)
    val_acc = torch.tensor([
        100 * (1 - validation.error_rate(preds[m]['val'], val_y)) for m in methods
    ])
    viewer.plot_bar(val_acc, [], 'Digit validation accuracy', dict(
        ytickmin=0.0, ytickmax=100.0, rownames=methods))

    # val may hold digits that never made it into the (truncated) train rows
    labels = torch.unique(torch.cat([train_y, val_y]), sorted=True).tolist()
    best = methods[int(val_acc.argmax().item())]
    conf = validation.confusion_matrix(preds[best]['val'].cpu(), val_y.cpu(), labels)
    print('{} validation confusion (rows gold, cols predicted):\n{}'.format(best, conf))
    names = [str(l) for l in labels]
    viewer.plot_heatmap(conf.double(), names, names, '{} confusion'.format(best))

    wrong = (preds[best]['val'] != val_y).nonzero()
    if len(wrong) > 0:
        i = int(wrong[0].item())
        viewer.view_digit(val_x[i].cpu(), int(val_y[i].item()), 'misclassified as {}'.format(
            int(preds[best]['val'][i].item())))
    print('discriminant.digits :: finish')


def simulated(n_train: int = 100, n_test: int = 1000) -> None:
    """
    Three Gaussian classes in 2d with different covariances. QDA should win.
    """
    print('discriminant.simulated :: start')
    gen = torch.Generator().manual_seed(constants.SEED)
    means = [
        torch.tensor([0.0, 0.0]), torch.tensor([2.0, 2.0]), torch.tensor([-2.0, 2.0]),
    ]
    covs = [
        torch.tensor([[1.0, 0.0], [0.0, 1.0]], dtype=constants.DTYPE),
        torch.tensor([[2.0, 1.5], [1.5, 2.0]], dtype=constants.DTYPE),
        torch.tensor([[0.3, 0.0], [0.0, 3.0]], dtype=constants.DTYPE),
    ]
    train_x, train_y = simulate.gaussian_classes([n_train] * 3, means, covs, gen)
    test_x, test_y = simulate.gaussian_classes([n_test] * 3, means, covs, gen)

    fitted = _fit_all(train_x, train_y, 0.0, 0.0, 1e-9, 0.0)
    _evaluate(fitted, [('train', train_x, train_y), ('test', test_x, test_y)])

    viewer.plot_scatter(
        train_x.float(), train_y + 1, ['class 0', 'class 1', 'class 2'],
        'Simulated classes')
    print('discriminant.simulated :: finish')


def main() -> None:
    parser = argparse.ArgumentParser(description='Discriminant analysis experiments.')
    choice = parser.add_mutually_exclusive_group(required=True)
    choice.add_argument('--digits', action='store_true')
    choice.add_argument('--simulated', action='store_true')
    parser.add_argument('--classes', type=int, nargs='+', default=None)
    parser.add_argument('--max-rows', type=int, default=None)
    args = parser.parse_args()
    if args.digits:
        digits(args.classes, args.max_rows)
    if args.simulated:
        simulated()


if __name__ == '__main__':
    main()
