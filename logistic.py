"""
Penalized binary logistic regression.

The input matrix carries its bias column last (see dataio.bias_tensor(...)), and
the bias weight is never penalized. Losses average the negative log likelihood
per datum and leave the penalty unaveraged, as in regression.py:

    1/n sum_i [ log(1 + exp(x_i^T w)) - y_i x_i^T w ] + penalty(w without bias)
"""

# imports
# ---

# builtins
import argparse
from typing import List, Optional, Sequence, Tuple

# 3rd party
import torch
import torch.nn.functional as F
from tqdm import tqdm

# local
import constants
import dataio
import regression
import simulate
import validation
import viewer


# functions
# ---

def _penalty_mask(w: torch.Tensor) -> torch.Tensor:
    # 1 for every weight but the final (bias) one
    mask = torch.ones_like(w)
    mask[-1] = 0.0
    return mask


def sigmoid(z: torch.Tensor) -> torch.Tensor:
    return torch.sigmoid(z)


def nll(w: torch.Tensor, x: torch.Tensor, y: torch.Tensor) -> float:
    """
    Negative log likelihood averaged per datum.
    """
    z = x.matmul(w)
    # softplus(z) = log(1 + exp(z)) without overflow
    return (F.softplus(z) - y.to(z.dtype) * z).mean().item()


def logistic_loss(w: torch.Tensor, x: torch.Tensor, y: torch.Tensor, lmb: float) -> float:
    """
    Ridge-penalized loss: nll + lmb * ||w_{-bias}||_2^2

    Arguments:
        w: 1d (D) weights, bias last
        x: 2d (N x D) input data, bias column last
        y: 1d (N) 0 / 1 labels
        lmb: regularization strength

    Returns:
        loss
    """
    return nll(w, x, y) + lmb * (w[:-1].pow(2).sum().item())


def l1_logistic_loss(w: torch.Tensor, x: torch.Tensor, y: torch.Tensor, lmb: float) -> float:
    """
    Lasso-penalized loss: nll + lmb * ||w_{-bias}||_1
    """
    return nll(w, x, y) + lmb * (w[:-1].abs().sum().item())


def logistic_gradient(w: torch.Tensor, x: torch.Tensor, y: torch.Tensor, lmb: float) -> torch.Tensor:
    """
    Gradient of logistic_loss(...):

        1/n X^T (sigmoid(Xw) - y) + 2 lmb w_{-bias}
    """
    n, d = x.size()
    p = sigmoid(x.matmul(w))
    return x.t().matmul(p - y.to(p.dtype)) / n + 2 * lmb * w * _penalty_mask(w)


def _init(x: torch.Tensor, w0: Optional[torch.Tensor]) -> torch.Tensor:
    n, d = x.size()
    if w0 is None:
        return torch.zeros(d, dtype=x.dtype, device=x.device)
    if tuple(w0.size()) != (d,):
        raise ValueError('w0 has size {}, wanted ({},)'.format(tuple(w0.size()), d))
    return w0.clone().to(x.device, x.dtype)


def gradient_descent(
        x: torch.Tensor, y: torch.Tensor, lmb: float,
        settings: regression.GDSettings,
        w0: Optional[torch.Tensor] = None) -> Tuple[torch.Tensor, regression.Record]:
    """
    Fixed step size gradient descent on logistic_loss(...), starting from
    w0 (default zeros), until the gradient's l2 norm is at most settings['tol']
    or settings['epochs'] run out.

    Returns:
        w: 1d (D) weights
        record: for a subset of the epochs (and the last one), maps epoch to
            loss
    """
    lr = settings['lr']
    epochs = settings['epochs']
    report_interval = settings['report_interval']
    tol = settings['tol']
    w = _init(x, w0)
    record = {}

    for epoch in range(epochs):
        grad = logistic_gradient(w, x, y, lmb)
        grad_norm = grad.norm(p=2).item()
        if grad_norm <= tol:
            record[epoch] = logistic_loss(w, x, y, lmb)
            print(' .. converged at epoch {}, loss: {:.6f}'.format(epoch, record[epoch]))
            break

        w -= lr * grad

        if report_interval > 0 and epoch % report_interval == 0:
            loss = logistic_loss(w, x, y, lmb)
            record[epoch] = loss
            print(' .. epoch {}, lr: {:.4f}, loss: {:.6f} (gradient mag: {:.6f})'.format(
                epoch, lr, loss, grad_norm))
    else:
        record[epochs] = logistic_loss(w, x, y, lmb)

    return w, record


def proximal_gradient(
        x: torch.Tensor, y: torch.Tensor, lmb: float,
        settings: regression.GDSettings,
        w0: Optional[torch.Tensor] = None) -> Tuple[torch.Tensor, regression.Record]:
    """
    L1-penalized logistic regression (minimizes l1_logistic_loss(...)) by
    proximal gradient descent: a gradient step on the likelihood, then
    soft-thresholding every non-bias weight by lr * lmb. Stops once no weight
    moves by more than settings['tol'].

    Returns:
        w: 1d (D) weights, with exact zeros for dropped features
        record: subset of epochs mapped to loss
    """
    lr = settings['lr']
    epochs = settings['epochs']
    report_interval = settings['report_interval']
    tol = settings['tol']
    w = _init(x, w0)
    record = {}

    for epoch in range(epochs):
        old = w.clone()
        w = w - lr * logistic_gradient(w, x, y, 0.0)
        w[:-1] = F.softshrink(w[:-1], lr * lmb)

        if report_interval > 0 and epoch % report_interval == 0:
            loss = l1_logistic_loss(w, x, y, lmb)
            record[epoch] = loss
            print(' .. epoch {}, loss: {:.6f} (0 ws: {})'.format(
                epoch, loss, (w[:-1] == 0).sum().item()))

        if (w - old).abs().max().item() <= tol:
            record[epoch] = l1_logistic_loss(w, x, y, lmb)
            break

    return w, record


def newton(
        x: torch.Tensor, y: torch.Tensor, lmb: float, iterations: int = 50,
        tol: float = 1e-10) -> Tuple[torch.Tensor, regression.Record]:
    """
    Newton-Raphson (iteratively reweighted least squares) on logistic_loss(...),
    for a reference solution. Stops when the Newton step's largest entry is at
    most tol.

    Returns:
        w: 1d (D) weights
        record: iteration mapped to loss
    """
    n, d = x.size()
    w = torch.zeros(d, dtype=x.dtype, device=x.device)
    penalty = torch.diag(2 * lmb * _penalty_mask(w))
    record = {}
    for it in range(iterations):
        p = sigmoid(x.matmul(w))
        grad = logistic_gradient(w, x, y, lmb)
        hess = x.t().matmul(x * (p * (1 - p)).unsqueeze(1)) / n + penalty
        step = torch.linalg.solve(hess, grad)
        w = w - step
        record[it] = logistic_loss(w, x, y, lmb)
        if step.abs().max().item() <= tol:
            break
    return w, record


def predict_proba(w: torch.Tensor, x: torch.Tensor) -> torch.Tensor:
    """
    P(y = 1 | x) for every row.
    """
    return sigmoid(x.matmul(w))


def predict(w: torch.Tensor, x: torch.Tensor, threshold: float = 0.5) -> torch.Tensor:
    return (predict_proba(w, x) >= threshold).long()


def error_rate(w: torch.Tensor, x: torch.Tensor, y: torch.Tensor) -> float:
    return validation.error_rate(predict(w, x), y.long())


# script
# ---

def _loss_curve(record: regression.Record, reference: float, name: str, win: str) -> None:
    # iterative method's loss against a flat line at the reference loss
    epochs = sorted(record.keys())
    xs = torch.tensor(epochs, dtype=torch.float64)
    viewer.plot_line(
        xs,
        torch.stack([
            torch.ones(len(xs), dtype=torch.float64) * reference,
            torch.tensor([record[e] for e in epochs], dtype=torch.float64),
        ]),
        ['Newton', name],
        win,
        dict(xlabel='epochs', ylabel='Loss'),
    )


def simulated(
        n: int = 1000, n_train: int = 500, d: int = 10,
        lambdas: Sequence[float] = (0.0, 0.001, 0.01, 0.1)) -> None:
    """
    Sparse logistic truth; ridge-penalized GD against Newton over a lambda grid,
    then the lasso penalty by proximal gradient.
    """
    print('logistic.simulated :: start')
    gen = torch.Generator().manual_seed(constants.SEED)
    beta = simulate.sparse_beta(d, 3, 1.5)
    x, y = simulate.logistic_data(n, beta, -0.5, simulate.ar_covariance(d, 0.5), gen)
    x = dataio.bias_tensor(x)
    x_train, y_train, x_test, y_test = dataio.head_split(x, y, n_train)

    settings: regression.GDSettings = {'lr': 1.0, 'epochs': 5000, 'report_interval': 500, 'tol': 1e-6}
    errors: List[float] = []
    for lmb in tqdm(lambdas, desc='lambda'):
        w, record = gradient_descent(x_train, y_train, lmb, settings)
        w_newton, _ = newton(x_train, y_train, lmb)
        ref = logistic_loss(w_newton, x_train, y_train, lmb)
        print('lambda={}: GD loss {:.6f}, Newton loss {:.6f}, max |w diff| {:.2e}'.format(
            lmb, logistic_loss(w, x_train, y_train, lmb), ref,
            (w - w_newton).abs().max().item()))
        err = error_rate(w, x_test, y_test)
        errors.append(err)
        print('lambda={}: train error {:.4f}, test error {:.4f}'.format(
            lmb, error_rate(w, x_train, y_train), err))
        _loss_curve(record, ref, 'Gradient descent', 'Logistic GD lambda={}'.format(lmb))

    viewer.plot_bar(
        torch.tensor(errors), [], 'Logistic test error by lambda',
        dict(rownames=[str(l) for l in lambdas]))

    l1_settings: regression.GDSettings = {'lr': 1.0, 'epochs': 5000, 'report_interval': 500, 'tol': 1e-8}
    for lmb in [0.01, 0.05]:
        w, _ = proximal_gradient(x_train, y_train, lmb, l1_settings)
        kept = (w[:-1] != 0).nonzero().view(-1).tolist()
        print('L1 lambda={}: kept features {}, test error {:.4f}'.format(
            lmb, kept, error_rate(w, x_test, y_test)))
    print('logistic.simulated :: finish')


def digits(pair: Tuple[int, int] = (4, 9), lmb: float = 0.01) -> None:
    """
    One digit against another with ridge-penalized logistic regression.
    """
    print('logistic.digits :: start')
    try:
        train_labels, train_x = dataio.load_digits('train')
        val_labels, val_x = dataio.load_digits('val')
    except FileNotFoundError as e:
        print('ERROR: {}. Run dataio.py --resplit and normalization.py first.'.format(e))
        return

    negative, positive = pair
    train_labels, train_x = dataio.select_classes(train_labels, train_x, pair)
    val_labels, val_x = dataio.select_classes(val_labels, val_x, pair)
    train_y = (train_labels == positive).long().to(constants.DEVICE)
    val_y = (val_labels == positive).long().to(constants.DEVICE)
    train_x = dataio.bias_tensor(train_x).to(constants.DEVICE)
    val_x = dataio.bias_tensor(val_x).to(constants.DEVICE)

    settings: regression.GDSettings = {'lr': 0.5, 'epochs': 2000, 'report_interval': 100, 'tol': 1e-5}
    w, record = gradient_descent(train_x, train_y, lmb, settings)
    print('{} vs {} lambda={}: train error {:.4f}, val error {:.4f}'.format(
        negative, positive, lmb, error_rate(w, train_x, train_y), error_rate(w, val_x, val_y)))

    epochs = sorted(record.keys())
    viewer.plot_line(
        torch.tensor(epochs, dtype=torch.float64),
        torch.tensor([record[e] for e in epochs]),
        ['Gradient descent'], 'Logistic digits {} vs {}'.format(negative, positive),
        dict(xlabel='epochs', ylabel='Loss', ytype='log'))
    # weights as an image: which pixels push toward `positive`
    viewer.view_digit(w[:-1].cpu(), positive, 'Logistic weights {} vs {}'.format(negative, positive))
    print('logistic.digits :: finish')


def main() -> None:
    parser = argparse.ArgumentParser(description='Penalized logistic regression.')
    choice = parser.add_mutually_exclusive_group(required=True)
    choice.add_argument('--simulated', action='store_true')
    choice.add_argument('--digits', action='store_true')
    args = parser.parse_args()
    if args.simulated:
        simulated()
    if args.digits:
        digits()


if __name__ == '__main__':
    main()
