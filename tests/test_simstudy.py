import pytest
import torch

import constants
import simstudy


SMALL: simstudy.Scenario = {
    'n_train': 40, 'n_test': 50, 'd': 6, 'nonzero': 2, 'beta_value': 2.0,
    'sigma': 1.0, 'rho': 0.5, 'cov_kind': 'ar',
}


def test_covariance_kinds():
    assert simstudy.covariance({**SMALL, 'cov_kind': 'iid'}) is None
    assert simstudy.covariance(SMALL).size() == (6, 6)
    with pytest.raises(ValueError):
        simstudy.covariance({**SMALL, 'cov_kind': 'toeplitz'})


def test_fit_ols_recovers_noiseless_truth():
    gen = torch.Generator().manual_seed(0)
    x = torch.randn(30, 3, generator=gen, dtype=constants.DTYPE) * 4 + 1
    beta = torch.tensor([1.0, -2.0, 0.5], dtype=constants.DTYPE)
    predictor, _ = simstudy.fit_ols(x, x.matmul(beta) + 5.0)
    x_new = torch.randn(10, 3, generator=gen, dtype=constants.DTYPE)
    assert torch.allclose(predictor(x_new), x_new.matmul(beta) + 5.0, atol=1e-8)


def test_choose_lambda():
    lambdas = [1.0, 0.1, 0.01]
    means = [3.0, 1.0, 1.05]
    ses = [0.1, 0.1, 0.1]
    assert simstudy.choose_lambda(lambdas, means, ses) == 0.1
    assert simstudy.choose_lambda(lambdas, [3.0, 1.05, 1.0], ses, one_se=True) == 0.1


def test_lambda_grids_decrease():
    gen = torch.Generator().manual_seed(0)
    x = torch.randn(30, 4, generator=gen, dtype=constants.DTYPE)
    y = x[:, 0] + 0.1 * torch.randn(30, generator=gen, dtype=constants.DTYPE)
    for grid in [simstudy.lasso_lambdas(x, y, n=10), simstudy.ridge_lambdas(10)]:
        assert len(grid) == 10
        assert all(a > b for a, b in zip(grid, grid[1:]))
    # smaller alpha needs a larger lambda to zero everything
    assert simstudy.lasso_lambdas(x, y, 0.5, 10)[0] > simstudy.lasso_lambdas(x, y, 1.0, 10)[0]


def test_cv_path_shapes():
    gen = torch.Generator().manual_seed(2)
    x = torch.randn(30, 4, generator=gen, dtype=constants.DTYPE)
    y = x[:, 0] + 0.1 * torch.randn(30, generator=gen, dtype=constants.DTYPE)
    lambdas = simstudy.ridge_lambdas(5)
    means, ses = simstudy.cv_path(x, y, lambdas, simstudy.ridge_path, 3, gen)
    assert len(means) == 5 and len(ses) == 5
    # heavy ridge is worse than light ridge on a strong signal
    assert means[0] > means[-1]


def test_lasso_refit_is_sparse_at_large_lambda():
    gen = torch.Generator().manual_seed(3)
    x = torch.randn(40, 5, generator=gen, dtype=constants.DTYPE)
    y = 3 * x[:, 0] + 0.1 * torch.randn(40, generator=gen, dtype=constants.DTYPE)
    grid = simstudy.lasso_lambdas(x, y, n=20)
    _, w = simstudy.refit(x, y, grid, grid[3], simstudy.enet_path_fn(1.0))
    assert w[0].item() != 0.0
    assert (w == 0).sum().item() >= 3


def test_run_and_summarize():
    gen = torch.Generator().manual_seed(4)
    results = simstudy.run(SMALL, 2, gen, folds=3)
    methods = {'OLS', 'Oracle', 'Ridge', 'Lasso', 'Lasso 1se', 'Elastic net'}
    assert set(results['mse']) == methods
    assert all(len(v) == 2 for v in results['mse'].values())
    assert all(0 <= tp <= SMALL['nonzero'] for tp in results['true_pos'])
    assert all(0 <= fp <= SMALL['d'] - SMALL['nonzero'] for fp in results['false_pos'])
    summary = simstudy.summarize(results)
    assert set(summary) == methods
    assert all(mean > 0 for mean, _ in summary.values())


def test_summarize():
    summary = simstudy.summarize({'mse': {'A': [1.0, 3.0], 'B': [2.0]}, 'true_pos': [], 'false_pos': []})
    assert summary['A'] == pytest.approx((2.0, 1.0))
    assert summary['B'] == (2.0, 0.0)
