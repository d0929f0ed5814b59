"""
Error measures and K-fold cross-validation, shared by the experiments.
"""

# imports
# ---

# builtins
from typing import Callable, List, Sequence, Tuple, Any

# 3rd party
import torch


# types
# ---

Fold = Tuple[torch.Tensor, torch.Tensor]
FitFn = Callable[[torch.Tensor, torch.Tensor], Any]
PredictFn = Callable[[Any, torch.Tensor], torch.Tensor]
LossFn = Callable[[torch.Tensor, torch.Tensor], float]


# functions
# ---

def mse(y_hat: torch.Tensor, y: torch.Tensor) -> float:
    """
    Mean squared error, averaged over every entry.
    """
    return (y_hat - y.to(y_hat.dtype)).pow(2).mean().item()


def error_rate(pred: torch.Tensor, gold: torch.Tensor) -> float:
    """
    Fraction of predictions that don't match gold labels.
    """
    return (pred != gold).double().mean().item()


def confusion_matrix(
        pred: torch.Tensor, gold: torch.Tensor, classes: Sequence[int]) -> torch.Tensor:
    """
    Returns C x C count matrix: rows are gold classes, columns predictions,
    both in the order of `classes`.
    """
    c = len(classes)
    index = {cls: i for i, cls in enumerate(classes)}
    m = torch.zeros(c, c, dtype=torch.long)
    for g, p in zip(gold.tolist(), pred.tolist()):
        m[index[g], index[p]] += 1
    return m


def kfold(n: int, folds: int, generator: torch.Generator) -> List[Fold]:
    """
    Randomly partitions range(n) into `folds` validation chunks whose sizes
    differ by at most one.

    Returns:
        list of (train_idx, val_idx) 1d index tensors
    """
    if folds < 2 or folds > n:
        raise ValueError('folds ({}) must be in [2, n={}]'.format(folds, n))
    perm = torch.randperm(n, generator=generator)
    chunks = _even_chunks(perm, folds)
    result = []
    for i, val_idx in enumerate(chunks):
        train_idx = torch.cat([c for j, c in enumerate(chunks) if j != i])
        result.append((train_idx, val_idx))
    return result


def _even_chunks(perm: torch.Tensor, folds: int) -> List[torch.Tensor]:
    # first n % folds chunks get one extra index
    n = len(perm)
    sizes = [n // folds + (1 if i < n % folds else 0) for i in range(folds)]
    return list(torch.split(perm, sizes))


def cross_val_error(
        x: torch.Tensor, y: torch.Tensor, fit_fn: FitFn, predict_fn: PredictFn,
        loss_fn: LossFn, folds: int, generator: torch.Generator) -> Tuple[float, float]:
    """
    Arguments:
        x: 2d (N x D) input data
        y: 1d (N) targets
        fit_fn: (x_train, y_train) -> model
        predict_fn: (model, x_val) -> predictions
        loss_fn: (predictions, y_val) -> loss
        folds: number of folds
        generator: for the fold assignment

    Returns:
        mean fold loss, standard error of the fold losses
    """
    losses = []
    for train_idx, val_idx in kfold(len(x), folds, generator):
        train_idx = train_idx.to(x.device)
        val_idx = val_idx.to(x.device)
        model = fit_fn(x[train_idx], y[train_idx])
        losses.append(loss_fn(predict_fn(model, x[val_idx]), y[val_idx]))
    t = torch.tensor(losses, dtype=torch.float64)
    return t.mean().item(), (t.std() / len(losses) ** 0.5).item()


def one_se_rule(
        params: Sequence[float], means: Sequence[float], ses: Sequence[float],
        simpler: Callable[[float, float], bool]) -> float:
    """
    Picks the simplest param whose CV error is within one standard error of
    the lowest CV error.

    Arguments:
        params: candidate parameter values
        means: CV error for each param
        ses: standard error for each param
        simpler: simpler(a, b) is True if a gives a simpler model than b
            (e.g., `lambda a, b: a > b` for penalty strength)
    """
    best = min(range(len(params)), key=lambda i: means[i])
    threshold = means[best] + ses[best]
    choice = params[best]
    for p, m in zip(params, means):
        if m <= threshold and simpler(p, choice):
            choice = p
    return choice
