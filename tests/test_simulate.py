import pytest
import torch

import constants
import simulate


def test_covariances():
    ar = simulate.ar_covariance(3, 0.5)
    assert ar.tolist() == [[1.0, 0.5, 0.25], [0.5, 1.0, 0.5], [0.25, 0.5, 1.0]]
    cs = simulate.cs_covariance(3, 0.2)
    assert cs.tolist() == [[1.0, 0.2, 0.2], [0.2, 1.0, 0.2], [0.2, 0.2, 1.0]]


def test_gaussian_design_covariance():
    gen = torch.Generator().manual_seed(3)
    cov = simulate.ar_covariance(3, 0.7)
    x = simulate.gaussian_design(20000, 3, cov, gen)
    assert x.dtype == constants.DTYPE
    emp = x.t().matmul(x) / len(x)
    assert torch.allclose(emp, cov, atol=0.05)


def test_sparse_beta():
    assert simulate.sparse_beta(5, 2, 3.0).tolist() == [3.0, 3.0, 0.0, 0.0, 0.0]
    with pytest.raises(ValueError):
        simulate.sparse_beta(3, 4)


def test_linear_data_without_noise():
    gen = torch.Generator().manual_seed(0)
    beta = torch.tensor([1.0, -2.0], dtype=constants.DTYPE)
    x, y = simulate.linear_data(50, beta, 0.0, None, gen)
    assert torch.allclose(y, x.matmul(beta))


def test_same_seed_same_data():
    a = simulate.knn_example(10, torch.Generator().manual_seed(7))
    b = simulate.knn_example(10, torch.Generator().manual_seed(7))
    assert torch.equal(a[0], b[0]) and torch.equal(a[1], b[1])


def test_curve_data_sorted_in_range():
    gen = torch.Generator().manual_seed(0)
    x, y = simulate.curve_data(100, gen, low=-1.0, high=2.0)
    assert torch.all(x[1:] >= x[:-1])
    assert x.min().item() >= -1.0 and x.max().item() <= 2.0
    assert y.size() == x.size()


def test_logistic_data_labels():
    gen = torch.Generator().manual_seed(0)
    beta = torch.tensor([3.0, 0.0], dtype=constants.DTYPE)
    x, y = simulate.logistic_data(500, beta, 0.0, None, gen)
    assert y.dtype == torch.long
    assert set(y.tolist()) == {0, 1}
    # strongly predictive first feature
    agree = ((x[:, 0] > 0).long() == y).double().mean().item()
    assert agree > 0.75


def test_gaussian_classes():
    gen = torch.Generator().manual_seed(0)
    means = [torch.zeros(2), torch.tensor([5.0, 5.0])]
    covs = [torch.eye(2), torch.eye(2)]
    x, y = simulate.gaussian_classes([30, 20], means, covs, gen)
    assert x.size() == (50, 2)
    assert y.tolist() == [0] * 30 + [1] * 20
    assert x[30:].mean().item() > 4.0
    with pytest.raises(ValueError):
        simulate.gaussian_classes([30], means, covs, gen)
