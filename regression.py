"""
Linear regression: ordinary least squares, ridge, lasso, and elastic net, each
solvable analytically (where possible), by gradient descent, or by coordinate
descent.

All losses average the data term per datum and leave the penalty unaveraged:

    1/n ||y - Xw||_2^2 + penalty(w)
"""

# imports
# ---

# builtins
import argparse
import math
from typing import Tuple, Dict, Union, Callable, Optional, Sequence, TypedDict

# 3rd party
import numpy as np
import torch
import torch.nn.functional as F

# local
import constants
import dataio
import simulate
import viewer


# types
# ---

Number = Union[float, torch.Tensor]
EvalFn = Callable[[torch.Tensor, torch.Tensor], int]
LossFn = Callable[[torch.Tensor, torch.Tensor, torch.Tensor, float], float]
GradientFn = Callable[[torch.Tensor, torch.Tensor, torch.Tensor, float], torch.Tensor]
WeightUpdateFn = Callable[[torch.Tensor, torch.Tensor, int, torch.Tensor, Number, float], Number]
class GDSettings(TypedDict):
    lr: float
    epochs: int
    report_interval: int
    tol: float
class CDSettings(TypedDict):
    epochs: int
    report_interval: int
    tol: float
Record = Dict[int, float]


# functions
# ---

#
# util
#

def soft_thresh(x: float, lmb: float) -> float:
    """
    This is a scalar version of torch.nn.functional.softshrink.

              x + lmb  if  x  <   -lmb
    Returns   0        if  x \\in [-lmb, lmb]
              x - lmb  if  x  >    lmb
    """
    if x < -lmb:
        return x + lmb
    elif x > lmb:
        return x - lmb
    else:
        return 0.0


def _shrink(rho: Number, z: float) -> Number:
    # rho is a 0d tensor for scalar regression, 1d (C) for multiclass
    if isinstance(rho, torch.Tensor):
        return F.softshrink(rho, z)
    return soft_thresh(rho, z)


#
# ordinary least squares (OLS)
#

def ols_loss(w: torch.Tensor, x: torch.Tensor, y: torch.Tensor, _: float = -1) -> float:
    """
    Returns ordinary least squares (OLS) loss, averaged per datum:

        1/n ||y - Xw||_2^2

    Arguments:
        w: either 1d (D) or 2d (D x C) weights of linear estimator (depending
            on y's dimensions)
        x: 2d (N x D) input data
        y: either 1d (N) targets,
               or 2d (N x C) one-hot representation of target labels
        _: unused (for API compatibility with regularized loss functions)

    Returns:
        ordinary least squares loss
    """
    n, d = x.size()
    return ((x.matmul(w) - y).pow(2).sum()/n).item()


def ols_analytic(x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
    """
    Returns ordinary least squares (OLS) analytic solution:

        w = (X^T X)^+ X^T y

    Arguments:
        x: 2d (N x D) input data
        y: either 1d (N) targets,
               or 2d (N x C) one-hot representation of target labels

    Returns
        w: either 1d (D) or 2d (D x C) weights of linear estimator (depending
            on y's dimensions)
    """
    # for regression, y becomes real values instead of labels
    y = y.to(x.dtype)

    # save X^T, as used twice
    x_t = x.t()

    # (X^T X)^+. X^T X is singular whenever columns are collinear (e.g. the
    # constant border pixels of digits), so use the SVD pseudoinverse.
    inv = torch.from_numpy(np.linalg.pinv(x_t.matmul(x).cpu().numpy())).to(x.device, x.dtype)

    # ... X^T y
    # note that matmul 2D x 2D tensors does matrix multiplication
    #           matmul 2D x 1D tensors does matrix-vector product
    return inv.matmul(x_t).matmul(y)


def ols_gradient(w: torch.Tensor, x: torch.Tensor, y: torch.Tensor, _: float) -> torch.Tensor:
    """
    Returns ordinary least squares (OLS) gradient for per-datum averaged loss.

    Note that the gradient is either a vector (if Y has dimensions (N)):

        dL/dw = [dL/dw_1,  dL/dw_2,  ...,  dL/dw_d]

    ... or a matrix (if Y has dimensions (N x C)):

        dL/dW = [[dL/dw_11,  dL/dw_12,  ...,  dL/dw_1c],
                 [dL/dw_21,  dL/dw_22,  ...,  dL/dw_2c],
                 ...
                 [dL/dw_d1,  dL/dw_d2,  ...,  dL/dw_dc]]

    Arguments:
        w: either 1d (D) or 2d (D x C) weights of linear estimator (depending
            on y's dimensions)
        x: 2d (N x D) input data
        y: either 1d (N) targets,
               or 2d (N x C) one-hot representation of target labels
        _: unused (for API compatibility with regularized loss functions)

    Returns:
        dL/dw: either 1d (D) or 2d (D x C) derivative of 1/n averaged OLS loss
            L with respect to weights w (depending on y's dimensions)
    """
    n, d = x.size()
    return (2/n)*(x.t().matmul(x.matmul(w) - y))


def ols_cd_weight_update(
        x: torch.Tensor, r: torch.Tensor, j: int, w_j: torch.Tensor,
        col_l2: Number, _: float) -> Number:
    """
    Returns new weight for OLS coordinate descent weight update: the exact
    minimizer along coordinate j given residual r = y - Xw.
    """
    return w_j + x[:,j].matmul(r) / col_l2 if col_l2 != 0.0 else 0.0


#
# ridge regression
#

def ridge_loss(w: torch.Tensor, x: torch.Tensor, y: torch.Tensor, lmb: float) -> float:
    """
    Returns ridge loss:

        1/n ( ||y - Xw||_2^2 ) + lmb * ||w||_2^2

    Arguments:
        w: 1D (D) or 2D (D x C) weights of linear estimator
        x: 2D (N x D) input data
        y: 1D (N) or 2D (N x C) targets
        lmb: regularization strength (lambda)

    Returns:
        ridge loss
    """
    return ols_loss(w, x, y, 0.0) + lmb*w.pow(2).sum().item()


def ridge_analytic(x: torch.Tensor, y: torch.Tensor, lmb: float) -> torch.Tensor:
    """
    Minimizer of ridge_loss(...):

        w = (X^T X + n lmb I)^-1 X^T y

    Arguments:
        x: 2d (N x D) input data
        y: 1d (N) or 2d (N x C) targets
        lmb: regularization strength (lambda)

    Returns:
        1d (D) or 2d (D x C) ridge weights
    """
    n, d = x.size()
    x_t = x.t()
    i = torch.eye(d, dtype=x.dtype, device=x.device)
    return torch.linalg.solve(x_t.matmul(x) + lmb*n*i, x_t.matmul(y.to(x.dtype)))


def ridge_gradient(
        w: torch.Tensor, x: torch.Tensor, y: torch.Tensor,
        lmb: float) -> torch.Tensor:
    """
    Gradient of ridge_loss(...) with respect to w.
    """
    n, d = x.size()
    return (2/n)*(x.t().matmul(x.matmul(w) - y)) + 2*lmb*w


def ridge_cd_weight_update(
        x: torch.Tensor, r: torch.Tensor, j: int, w_j: torch.Tensor,
        col_l2: Number, lmb: float) -> Number:
    """
    Returns new weight for ridge coordinate descent weight update. Setting the
    derivative along coordinate j to zero gives

        w_j = (x_j^T r + ||x_j||^2 w_j_old) / (||x_j||^2 + n lmb)
    """
    n, d = x.size()
    denom = col_l2 + n*lmb
    if denom == 0.0:
        return 0.0
    return (x[:,j].matmul(r) + col_l2*w_j) / denom


def ridge_df(x: torch.Tensor, lmb: float) -> float:
    """
    Effective degrees of freedom of ridge at strength lmb: the trace of the
    hat matrix X (X^T X + n lmb I)^-1 X^T, computed from the singular values
    of X as

        sum_j d_j^2 / (d_j^2 + n lmb)
    """
    n, d = x.size()
    s2 = torch.linalg.svdvals(x).pow(2)
    if lmb == 0.0:
        # ignore numerically zero singular values, i.e. this is the rank
        return (s2 > s2.max() * 1e-12).sum().item()
    return (s2 / (s2 + n*lmb)).sum().item()


#
# lasso
#

def lasso_loss(
        w: torch.Tensor, x: torch.Tensor, y: torch.Tensor, lmb: float) -> float:
    """
    Returns lasso loss:

        1/n ( ||y - Xw||_2^2 ) + lmb * ||w||_1

    Arguments:
        w: 1D (D) or 2D (D x C) weights of linear estimator
        x: 2D (N x D) input data
        y: 1D (N) or 2D (N x C) targets
        lmb: regularization strength (lambda)

    Returns:
        lasso loss
    """
    return ols_loss(w, x, y, 0.0) + lmb*w.abs().sum().item()


def lasso_gradient(
        w: torch.Tensor, x: torch.Tensor, y: torch.Tensor,
        lmb: float) -> torch.Tensor:
    """
    (Sub)gradient of lasso_loss(...) with respect to w. Uses sign(0) = 0, so
    gradient descent never lands weights on exactly zero; use coordinate
    descent for sparse solutions.
    """
    n, d = x.size()
    return (2/n)*(x.t().matmul(x.matmul(w) - y)) + lmb*w.sign()


def lasso_cd_weight_update(
        x: torch.Tensor, r: torch.Tensor, j: int, w_j: torch.Tensor,
        col_l2: Number, lmb: float) -> Number:
    """
    Returns new weight for lasso coordinate descent weight update:

        rho = x_j^T (r + x_j w_j_old)
        w_j = S(rho, n lmb / 2) / ||x_j||^2

    where S is the soft threshold.
    """
    if col_l2 == 0.0:
        return 0.0
    n, d = x.size()
    z = (n * lmb) / 2
    if w_j.dim() > 0:
        # multiclass: r is (N x C), w_j is (C)
        rho = x[:,j].matmul(r + x[:,j].unsqueeze(1).matmul(w_j.unsqueeze(0)))
    else:
        rho = x[:,j].matmul(r + x[:,j]*w_j)
    return _shrink(rho, z) / col_l2


def lasso_max_lambda(x: torch.Tensor, y: torch.Tensor) -> float:
    """
    Smallest lmb at which every lasso weight is zero:

        lmb_max = 2/n max_j |x_j^T y|
    """
    n, d = x.size()
    return (2/n) * x.t().matmul(y.to(x.dtype)).abs().max().item()


#
# elastic net
#

def elastic_net_loss(
        w: torch.Tensor, x: torch.Tensor, y: torch.Tensor, lmb: float,
        alpha: float) -> float:
    """
    Returns elastic net loss, mixing the lasso (alpha = 1) and ridge
    (alpha = 0) penalties:

        1/n ||y - Xw||_2^2 + lmb * (alpha ||w||_1 + (1 - alpha) ||w||_2^2)
    """
    penalty = alpha*w.abs().sum().item() + (1 - alpha)*w.pow(2).sum().item()
    return ols_loss(w, x, y, 0.0) + lmb*penalty


def elastic_net_cd_weight_update(
        x: torch.Tensor, r: torch.Tensor, j: int, w_j: torch.Tensor,
        col_l2: Number, lmb: float, alpha: float) -> Number:
    """
    Returns new weight for elastic net coordinate descent weight update:

        w_j = S(rho, n lmb alpha / 2) / (||x_j||^2 + n lmb (1 - alpha))
    """
    n, d = x.size()
    denom = col_l2 + n*lmb*(1 - alpha)
    if denom == 0.0:
        return 0.0
    z = (n * lmb * alpha) / 2
    if w_j.dim() > 0:
        rho = x[:,j].matmul(r + x[:,j].unsqueeze(1).matmul(w_j.unsqueeze(0)))
    else:
        rho = x[:,j].matmul(r + x[:,j]*w_j)
    return _shrink(rho, z) / denom


def make_elastic_net(alpha: float) -> Tuple[WeightUpdateFn, LossFn]:
    """
    Returns (weight_update_fn, loss_fn) for elastic net with mixing `alpha`,
    shaped to plug into coordinate_descent(...).
    """
    if not 0.0 <= alpha <= 1.0:
        raise ValueError('alpha ({}) must be in [0, 1]'.format(alpha))

    def update(x: torch.Tensor, r: torch.Tensor, j: int, w_j: torch.Tensor,
               col_l2: Number, lmb: float) -> Number:
        return elastic_net_cd_weight_update(x, r, j, w_j, col_l2, lmb, alpha)

    def loss(w: torch.Tensor, x: torch.Tensor, y: torch.Tensor, lmb: float) -> float:
        return elastic_net_loss(w, x, y, lmb, alpha)

    return update, loss


#
# general
#

def _init_weights(
        x: torch.Tensor, y: torch.Tensor,
        w0: Optional[torch.Tensor]) -> torch.Tensor:
    n, d = x.size()
    w_dims = (d,) if len(y.size()) == 1 else (d, y.size()[1])
    if w0 is not None:
        if tuple(w0.size()) != w_dims:
            raise ValueError('w0 has size {}, wanted {}'.format(tuple(w0.size()), w_dims))
        return w0.clone().to(x.device, x.dtype)
    # initial w is drawn from gaussian(0, 1)
    return torch.randn(w_dims, dtype=x.dtype, device=x.device)


def gradient_descent(
        x: torch.Tensor, y: torch.Tensor, lmb: float, loss_fn: LossFn,
        grad_fn: GradientFn, settings: GDSettings,
        w0: Optional[torch.Tensor] = None) -> Tuple[torch.Tensor, Record]:
    """
    Arguments:
        x: 2d (N x D) input data
        y: either 1d (N) targets,
               or 2d (N x C) one-hot representation of target labels
        lmb: regularization strength (if applicable)
        loss_fn: how to compute loss
        grad_fn: how to compute the gradient
        settings: 'lr', 'epochs', 'report_interval' (0 for silence), and 'tol'
            (stop once no weight moves by more than tol in an epoch; 0 to
            always run all epochs)
        w0: initial weights (default: drawn from N(0, 1))

    Returns:
        w: either 1d (D) or 2d (D x C) weights of linear estimator (depending
            on y's dimensions)
        record: for a subset of the epochs, maps epoch to loss
    """
    lr = settings['lr']
    epochs = settings['epochs']
    report_interval = settings['report_interval']
    tol = settings['tol']

    y = y.to(x.dtype)
    w = _init_weights(x, y, w0)
    record = {}

    for epoch in range(epochs):
        grad = grad_fn(w, x, y, lmb)
        step = lr * grad
        w -= step

        if report_interval > 0 and epoch % report_interval == 0:
            loss = loss_fn(w, x, y, lmb)
            record[epoch] = loss
            print(' .. epoch {}, lr: {:.4f}, loss: {:.4f} (gradient mag: {:.4f}) (0 ws: {})'.format(
                epoch, lr, loss, grad.norm(p=2).item(), (w == 0).sum().item()))

        if tol > 0 and step.abs().max().item() <= tol:
            record[epoch] = loss_fn(w, x, y, lmb)
            break

    return w, record


def coordinate_descent(
        x: torch.Tensor, y: torch.Tensor, lmb: float,
        weight_update_fn: WeightUpdateFn, loss_fn: LossFn,
        settings: CDSettings,
        w0: Optional[torch.Tensor] = None) -> Tuple[torch.Tensor, Record]:
    """
    Runs coordinate descent.

    Arguments:
        x: 2d (N x D) input data
        y: 1d (N) or 2d (N x C) targets
        lmb: regularization strength (if applicable)
        weight_update_fn: how to update w[j]
        loss_fn: how to compute loss
        settings: 'epochs', 'report_interval' (0 for silence), and 'tol' (stop
            once no weight changes by more than tol in a sweep; 0 to always
            run all epochs)
        w0: initial weights (default: drawn from N(0, 1))

    Returns:
        w: 1d (D) or 2d (D x C) weights
        record: subset of epochs mapped to loss
    """
    epochs = settings['epochs']
    report_interval = settings['report_interval']
    tol = settings['tol']
    y = y.to(x.dtype)
    n, d = x.size()
    multiclass = len(y.size()) > 1
    record = {}

    w = _init_weights(x, y, w0)

    # precompute sq l2 column norms (don't change as x stays fixed)
    col_l2s = x.pow(2).sum(0)

    # compute initial residual
    r = y - x.matmul(w)

    for epoch in range(epochs):
        if report_interval > 0 and epoch % report_interval == 0:
            loss = loss_fn(w, x, y, lmb)
            record[epoch] = loss
            print('\t CD epoch {}, loss: {:.4f} (0 ws: {})'.format(
                epoch, loss, (w == 0).sum().item()))

        # just do linear scan over coordinates
        max_change = 0.0
        for j in range(d):
            # save old val for residual update. need to copy tensor to
            # remember old val as w[j] is a view.
            w_j_old = w[j].clone()

            w[j] = weight_update_fn(x, r, j, w_j_old, col_l2s[j], lmb)

            # update residual (either (N) or (N x C)). updates are:
            # - scalar case: scalar times 1d (N) column
            # - multiclass case: 2d (N x 1) column times 2d (1 x C) weight
            w_diff = w_j_old - w[j]
            r += x[:,j:j+1].matmul(w_diff.view(1,-1)) if multiclass else w_diff * x[:,j]
            max_change = max(max_change, w_diff.abs().max().item())

        if tol > 0 and max_change <= tol:
            record[epoch + 1] = loss_fn(w, x, y, lmb)
            break
    return w, record


def lambda_grid(lmb_max: float, n: int = 100, ratio: float = 1e-3) -> torch.Tensor:
    """
    Returns n log-spaced lambdas from lmb_max down to ratio * lmb_max.
    """
    if lmb_max <= 0:
        raise ValueError('lmb_max ({}) must be positive'.format(lmb_max))
    return torch.logspace(
        math.log10(lmb_max), math.log10(lmb_max * ratio), n, dtype=torch.float64)


def lasso_path(
        x: torch.Tensor, y: torch.Tensor, lambdas: Sequence[float],
        settings: CDSettings, alpha: float = 1.0) -> torch.Tensor:
    """
    Solves the lasso (or elastic net, for alpha < 1) at every lambda, largest
    first, warm-starting each solve at the previous solution.

    Arguments:
        x: 2d (N x D) input data
        y: 1d (N) targets
        lambdas: regularization strengths (any order)
        settings: coordinate descent settings for each solve
        alpha: elastic net mixing (1 is lasso)

    Returns:
        2d (L x D) weights, row i for the i-th largest lambda
    """
    update, loss = make_elastic_net(alpha)
    n, d = x.size()
    ordered = sorted([float(l) for l in lambdas], reverse=True)
    w = torch.zeros(d, dtype=x.dtype, device=x.device)
    ws = []
    for lmb in ordered:
        w, _ = coordinate_descent(x, y, lmb, update, loss, settings, w)
        ws.append(w.clone())
    return torch.stack(ws)


#
# evaluation
#

def scalar_eval(y_hat: torch.Tensor, y: torch.Tensor) -> int:
    """
    Returns number correct: how often the rounded predicted value matches gold.

    Arguments:
        y_hat: 1d (N): guesses for class label
        y: 1d (N): numeric class labels

    Returns:
        number correct
    """
    return (y_hat.round().long() == y.long()).sum().item()


def multiclass_eval(y_hat: torch.Tensor, y: torch.Tensor) -> int:
    """
    Returns number correct: how often the highest scoring class matches gold.

    Arguments:
        y_hat: 2d (N x C): guesses for each class
        y: 2d (N x C): onehot representation of class labels

    Returns:
        number correct
    """
    # max(dim) returns both values and indices. compare best indices from
    # predictions and gold (which are just onehot)
    _, pred_idxes = y_hat.max(1)
    _, gold_idxes = y.max(1)
    return (pred_idxes == gold_idxes).sum().item()


def accuracy(
        x: torch.Tensor, y: torch.Tensor, w: torch.Tensor,
        eval_fn: EvalFn) -> Tuple[int, int, float]:
    """
    Arguments:
        x: 2d (N x D) input data
        y: either 1d (N) or 2d (N x C) target labels
        w: either 1d (D) or 2d (D x C) weights of linear estimator
        eval_fn: function to determine number gotten correct

    Returns:
        correct, total, accuracy (as percent out of 100)
    """
    y_hat = x.matmul(w)
    corr = eval_fn(y_hat, y)
    total = len(y)
    return corr, total, round((corr/total)*100, 2)


def report(
        method_name: str, w: torch.Tensor, x: torch.Tensor, y: torch.Tensor,
        lmb: float, eval_fn: EvalFn, loss_fn: LossFn) -> None:
    """
    Arguments:
        method_name: printable representation of estimation technique
        w: either 1d (D) or 2d (D x C) weights of linear estimator
        x: 2d (N x D) input data
        y: either 1d (N) or 2d (N x C) target labels
        lmb: regularization lambda (if relevant), or dummy val
        eval_fn: function to determine number gotten correct
        loss_fn: function to determine loss
    """
    corr, total, acc = accuracy(x, y, w, eval_fn)
    loss = loss_fn(w, x, y.to(x.dtype), lmb)

    print('{} accuracy: {}/{} ({}%)'.format(method_name, corr, total, acc))
    print('{} average loss: {}'.format(method_name, loss))


# script
# ---

def _loss_curve(record: Record, reference: float, legend: Sequence[str], win: str) -> None:
    # iterative loss against a flat line at the reference loss
    epochs = sorted(record.keys())
    xs = torch.tensor(epochs, dtype=torch.float64)
    viewer.plot_line(
        xs,
        torch.stack([
            torch.ones(len(xs), dtype=torch.float64) * reference,
            torch.tensor([record[e] for e in epochs], dtype=torch.float64),
        ]),
        list(legend),
        win,
        dict(xlabel='epochs', ylabel='Loss'),
    )


def solvers(n: int = 600, n_train: int = 400, d: int = 5, lmb: float = 0.1) -> None:
    """
    Regress to scalar value, e.g. a point from class 2 goes to the number 2, on
    three simulated Gaussian classes. OLS, ridge, and lasso are each solved
    every way they can be; gradient and coordinate descent should land on the
    analytic solution (for the lasso, on each other).
    """
    print('regression.solvers :: start')
    gen = torch.Generator().manual_seed(constants.SEED)
    means = [torch.full((d,), float(c)) for c in range(3)]
    covs = [torch.eye(d, dtype=constants.DTYPE)] * 3
    x, y = simulate.gaussian_classes([n // 3] * 3, means, covs, gen)
    train_x, train_y, val_x, val_y = dataio.random_split(dataio.bias_tensor(x), y, n_train, gen)

    gd_settings: GDSettings = {'lr': 0.02, 'epochs': 3000, 'report_interval': 500, 'tol': 1e-9}
    cd_settings: CDSettings = {'epochs': 500, 'report_interval': 50, 'tol': 1e-9}
    w0 = torch.zeros(d + 1, dtype=constants.DTYPE)

    # name, lambda, loss, gradient, CD update, analytic solution (if any)
    methods = [
        ('OLS', 0.0, ols_loss, ols_gradient, ols_cd_weight_update,
            ols_analytic(train_x, train_y)),
        ('Ridge', lmb, ridge_loss, ridge_gradient, ridge_cd_weight_update,
            ridge_analytic(train_x, train_y, lmb)),
        ('Lasso', lmb, lasso_loss, lasso_gradient, lasso_cd_weight_update, None),
    ]
    for name, reg, loss_fn, grad_fn, update_fn, w_exact in methods:
        w_gd, gd_record = gradient_descent(train_x, train_y, reg, loss_fn, grad_fn, gd_settings, w0)
        w_cd, cd_record = coordinate_descent(train_x, train_y, reg, update_fn, loss_fn, cd_settings, w0)
        fits = [('GD', w_gd), ('CD', w_cd)]
        if w_exact is not None:
            fits.insert(0, ('analytic', w_exact))
        for solver, w in fits:
            label = '[scalar] {} {} lambda={}'.format(name, solver, reg)
            report(label + ' (train)', w, train_x, train_y, reg, scalar_eval, loss_fn)
            report(label + ' (val)', w, val_x, val_y, reg, scalar_eval, loss_fn)

        # subgradient descent never sets a lasso weight exactly to 0, so CD is
        # the lasso's reference
        w_ref = w_exact if w_exact is not None else w_cd
        ref = loss_fn(w_ref, train_x, train_y.to(train_x.dtype), reg)
        ref_name = 'Analytic' if w_exact is not None else 'Coordinate descent'
        print('{}: max |w diff| GD {:.2e}, CD {:.2e}'.format(
            name, (w_gd - w_ref).abs().max().item(), (w_cd - w_ref).abs().max().item()))
        _loss_curve(gd_record, ref, [ref_name, 'Gradient descent'], '{} Gradient Descent'.format(name))
        if w_exact is not None:
            _loss_curve(cd_record, ref, [ref_name, 'Coordinate descent'], '{} Coordinate Descent'.format(name))
    print('regression.solvers :: finish')


def main() -> None:
    parser = argparse.ArgumentParser(description='Compare linear regression solvers.')
    parser.add_argument('--n', type=int, default=600)
    parser.add_argument('--n-train', type=int, default=400)
    parser.add_argument('--d', type=int, default=5)
    parser.add_argument('--lmb', type=float, default=0.1)
    args = parser.parse_args()
    solvers(args.n, args.n_train, args.d, args.lmb)


if __name__ == '__main__':
    main()
