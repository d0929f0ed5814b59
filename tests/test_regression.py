import pytest
import torch

import constants
import dataio
import regression


def _data(n=100, seed=0):
    gen = torch.Generator().manual_seed(seed)
    x = torch.randn(n, 5, generator=gen, dtype=constants.DTYPE)
    beta = torch.tensor([2.0, 0.0, -1.0, 0.0, 0.5], dtype=constants.DTYPE)
    y = x.matmul(beta) + 0.3 * torch.randn(n, generator=gen, dtype=constants.DTYPE)
    return x, y


def _zeros(d, *rest):
    return torch.zeros(d, *rest, dtype=constants.DTYPE)


GD: regression.GDSettings = {'lr': 0.1, 'epochs': 5000, 'report_interval': 0, 'tol': 1e-12}
CD: regression.CDSettings = {'epochs': 1000, 'report_interval': 0, 'tol': 1e-12}


def test_soft_thresh():
    assert regression.soft_thresh(3.0, 1.0) == 2.0
    assert regression.soft_thresh(-3.0, 1.0) == -2.0
    assert regression.soft_thresh(0.5, 1.0) == 0.0
    assert regression.soft_thresh(-0.5, 1.0) == 0.0


def test_ols_analytic_matches_lstsq():
    x, y = _data()
    w = regression.ols_analytic(x, y)
    expected = torch.linalg.lstsq(x, y.view(-1, 1)).solution.view(-1)
    assert torch.allclose(w, expected, atol=1e-10)


def test_ols_analytic_collinear_columns():
    x, y = _data()
    x = torch.cat([x, x[:, :1]], dim=1)
    w = regression.ols_analytic(x, y)
    assert not torch.isnan(w).any()
    # the pseudoinverse splits weight evenly between duplicated columns
    assert w[0].item() == pytest.approx(w[5].item(), abs=1e-8)


def test_ols_solvers_agree():
    x, y = _data()
    w_analytic = regression.ols_analytic(x, y)
    w_gd, _ = regression.gradient_descent(
        x, y, 0.0, regression.ols_loss, regression.ols_gradient, GD, _zeros(5))
    w_cd, record = regression.coordinate_descent(
        x, y, 0.0, regression.ols_cd_weight_update, regression.ols_loss, CD, _zeros(5))
    assert torch.allclose(w_gd, w_analytic, atol=1e-6)
    assert torch.allclose(w_cd, w_analytic, atol=1e-6)
    # converged before running out of epochs
    assert max(record) < CD['epochs']


def test_ridge_solvers_agree():
    x, y = _data()
    lmb = 0.5
    w_analytic = regression.ridge_analytic(x, y, lmb)
    w_gd, _ = regression.gradient_descent(
        x, y, lmb, regression.ridge_loss, regression.ridge_gradient, GD, _zeros(5))
    w_cd, _ = regression.coordinate_descent(
        x, y, lmb, regression.ridge_cd_weight_update, regression.ridge_loss, CD, _zeros(5))
    assert torch.allclose(w_gd, w_analytic, atol=1e-6)
    assert torch.allclose(w_cd, w_analytic, atol=1e-6)
    # shrinks relative to least squares
    assert w_analytic.norm().item() < regression.ols_analytic(x, y).norm().item()


def test_ridge_gradient_matches_autograd():
    x, y = _data(n=20)
    w = torch.randn(5, generator=torch.Generator().manual_seed(9), dtype=constants.DTYPE)
    w.requires_grad_(True)
    loss = (y - x.matmul(w)).pow(2).sum() / len(x) + 0.3 * w.pow(2).sum()
    loss.backward()
    grad = regression.ridge_gradient(w.detach(), x, y, 0.3)
    assert torch.allclose(grad, w.grad, atol=1e-10)


def test_multiclass_ridge_cd_matches_analytic():
    gen = torch.Generator().manual_seed(1)
    x = torch.randn(60, 3, generator=gen, dtype=constants.DTYPE)
    labels = torch.randint(0, 3, (60,), generator=gen)
    y = dataio.labels_to_onehot(labels, 3)
    w_analytic = regression.ridge_analytic(x, y, 0.1)
    w_cd, _ = regression.coordinate_descent(
        x, y, 0.1, regression.ridge_cd_weight_update, regression.ridge_loss, CD, _zeros(3, 3))
    assert w_cd.size() == (3, 3)
    assert torch.allclose(w_cd, w_analytic, atol=1e-6)


def test_ridge_df():
    x, _ = _data(n=50)
    assert regression.ridge_df(x, 0.0) == 5
    df = regression.ridge_df(x, 1.0)
    assert 0.0 < df < 5.0
    n = len(x)
    hat = x.matmul(torch.linalg.solve(
        x.t().matmul(x) + n * 1.0 * torch.eye(5, dtype=x.dtype), x.t()))
    assert df == pytest.approx(hat.trace().item())
    assert regression.ridge_df(x, 10.0) < df
    # duplicated column doesn't add rank
    assert regression.ridge_df(torch.cat([x, x[:, :1]], dim=1), 0.0) == 5


def test_lasso_cd_satisfies_optimality():
    x, y = _data()
    lmb = 0.1
    w, _ = regression.coordinate_descent(
        x, y, lmb, regression.lasso_cd_weight_update, regression.lasso_loss, CD, _zeros(5))
    # 2/n x_j^T r == lmb sign(w_j) for nonzero weights, |.| <= lmb otherwise
    g = (2 / len(x)) * x.t().matmul(y - x.matmul(w))
    for j in range(5):
        if w[j].item() != 0.0:
            assert g[j].item() == pytest.approx(lmb * w[j].sign().item(), abs=1e-6)
        else:
            assert abs(g[j].item()) <= lmb + 1e-8
    assert w[0].item() > 1.0


def test_multiclass_lasso_cd_runs():
    gen = torch.Generator().manual_seed(2)
    x = torch.randn(40, 4, generator=gen, dtype=constants.DTYPE)
    y = dataio.labels_to_onehot(torch.randint(0, 2, (40,), generator=gen), 2)
    w, _ = regression.coordinate_descent(
        x, y, 10.0, regression.lasso_cd_weight_update, regression.lasso_loss, CD, _zeros(4, 2))
    # strong penalty zeros everything
    assert torch.equal(w, _zeros(4, 2))


def test_lasso_max_lambda_zeros_everything():
    x, y = _data()
    lmb_max = regression.lasso_max_lambda(x, y)
    w, _ = regression.coordinate_descent(
        x, y, lmb_max * 1.001, regression.lasso_cd_weight_update,
        regression.lasso_loss, CD, _zeros(5))
    assert torch.equal(w, _zeros(5))
    w, _ = regression.coordinate_descent(
        x, y, lmb_max * 0.9, regression.lasso_cd_weight_update,
        regression.lasso_loss, CD, _zeros(5))
    assert (w != 0).any()


def test_elastic_net_extremes():
    x, y = _data()
    lasso, _ = regression.coordinate_descent(
        x, y, 0.1, regression.lasso_cd_weight_update, regression.lasso_loss, CD, _zeros(5))
    update, loss = regression.make_elastic_net(1.0)
    enet, _ = regression.coordinate_descent(x, y, 0.1, update, loss, CD, _zeros(5))
    assert torch.allclose(enet, lasso, atol=1e-10)

    update, loss = regression.make_elastic_net(0.0)
    enet, _ = regression.coordinate_descent(x, y, 0.1, update, loss, CD, _zeros(5))
    assert torch.allclose(enet, regression.ridge_analytic(x, y, 0.1), atol=1e-6)

    with pytest.raises(ValueError):
        regression.make_elastic_net(1.5)


def test_elastic_net_loss():
    w = torch.tensor([1.0, -2.0], dtype=constants.DTYPE)
    x = torch.eye(2, dtype=constants.DTYPE)
    y = w.clone()
    # data term is zero; penalty = 0.5 * (0.5 * 3 + 0.5 * 5)
    assert regression.elastic_net_loss(w, x, y, 0.5, 0.5) == pytest.approx(2.0)


def test_lambda_grid():
    grid = regression.lambda_grid(2.0, 5, 1e-2)
    assert len(grid) == 5
    assert grid[0].item() == pytest.approx(2.0)
    assert grid[-1].item() == pytest.approx(0.02)
    assert torch.all(grid[1:] < grid[:-1])
    with pytest.raises(ValueError):
        regression.lambda_grid(0.0)


def test_lasso_path():
    x, y = _data()
    lmb_max = regression.lasso_max_lambda(x, y)
    lambdas = [1e-8, lmb_max * 1.001, lmb_max * 0.1]
    ws = regression.lasso_path(x, y, lambdas, CD)
    assert ws.size() == (3, 5)
    # rows run from the largest lambda down
    assert torch.equal(ws[0], _zeros(5))
    assert (ws[1] != 0).sum().item() <= (ws[2] != 0).sum().item()
    assert torch.allclose(ws[2], regression.ols_analytic(x, y), atol=1e-4)


def test_init_weights_shape_check():
    x, y = _data()
    with pytest.raises(ValueError):
        regression.gradient_descent(
            x, y, 0.0, regression.ols_loss, regression.ols_gradient, GD, _zeros(4))


def test_report_interval_records_losses():
    x, y = _data()
    settings: regression.GDSettings = {'lr': 0.1, 'epochs': 20, 'report_interval': 5, 'tol': 0.0}
    _, record = regression.gradient_descent(
        x, y, 0.0, regression.ols_loss, regression.ols_gradient, settings, _zeros(5))
    assert sorted(record) == [0, 5, 10, 15]
    assert record[15] < record[0]


def test_lasso_gradient_descent_lowers_loss():
    x, y = _data()
    w0 = _zeros(5)
    start = regression.lasso_loss(w0, x, y, 0.1)
    settings: regression.GDSettings = {'lr': 0.05, 'epochs': 200, 'report_interval': 0, 'tol': 0.0}
    w, _ = regression.gradient_descent(
        x, y, 0.1, regression.lasso_loss, regression.lasso_gradient, settings, w0)
    assert regression.lasso_loss(w, x, y, 0.1) < start
    # w0 is copied, not updated in place
    assert torch.equal(w0, _zeros(5))


def test_report_prints_accuracy_and_loss(capsys):
    x = torch.eye(2, dtype=constants.DTYPE)
    y = torch.tensor([[1, 0], [0, 1]])
    w = torch.eye(2, dtype=constants.DTYPE)
    regression.report('Identity', w, x, y, 0.0, regression.multiclass_eval, regression.ols_loss)
    out = capsys.readouterr().out
    assert 'Identity accuracy: 2/2 (100.0%)' in out
    assert 'Identity average loss: 0.0' in out


def test_accuracy_and_evals():
    x = torch.eye(3, dtype=constants.DTYPE)
    w = torch.tensor([0.9, 2.2, 2.6], dtype=constants.DTYPE)
    y = torch.tensor([1, 2, 2])
    assert regression.accuracy(x, y, w, regression.scalar_eval) == (2, 3, 66.67)

    y_hat = torch.tensor([[0.1, 0.9], [0.8, 0.2]])
    gold = torch.tensor([[0, 1], [0, 1]])
    assert regression.multiclass_eval(y_hat, gold) == 1
