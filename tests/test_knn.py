import pytest
import torch

import constants
import knn
import simulate


def _line(*vals):
    return torch.tensor(vals, dtype=constants.DTYPE).view(-1, 1)


def test_neighbors_ties_go_to_lower_index():
    x_train = _line(0.0, 1.0, -1.0, 2.0)
    idx, dists = knn.neighbors(x_train, _line(0.0), 3)
    assert idx.tolist() == [[0, 1, 2]]
    assert dists.tolist() == [[0.0, 1.0, 1.0]]


def test_neighbors_bad_k():
    x_train = _line(0.0, 1.0)
    with pytest.raises(ValueError):
        knn.neighbors(x_train, x_train, 0)
    with pytest.raises(ValueError):
        knn.neighbors(x_train, x_train, 3)


def test_neighbors_batches(monkeypatch):
    gen = torch.Generator().manual_seed(0)
    x = torch.randn(30, 2, generator=gen, dtype=constants.DTYPE)
    full_idx, _ = knn.neighbors(x, x, 4)
    monkeypatch.setattr(knn, 'BATCH', 7)
    batched_idx, _ = knn.neighbors(x, x, 4)
    assert torch.equal(full_idx, batched_idx)


def test_one_nn_reproduces_training_labels():
    gen = torch.Generator().manual_seed(0)
    x, y = simulate.knn_example(50, gen)
    assert torch.allclose(knn.knn_regress(x, y, x, 1), y)


def test_k_equals_n_predicts_mean():
    gen = torch.Generator().manual_seed(0)
    x, y = simulate.knn_example(20, gen)
    query = torch.randn(5, 4, generator=gen, dtype=constants.DTYPE)
    pred = knn.knn_regress(x, y, query, 20)
    assert torch.allclose(pred, y.mean().expand(5))


def test_distance_weighting():
    x_train = _line(0.0, 1.0, 2.0)
    y_train = torch.tensor([5.0, 7.0, 9.0], dtype=constants.DTYPE)
    # a query on a training point takes that point's label
    assert knn.knn_regress(x_train, y_train, _line(1.0), 3, 'distance').tolist() == [7.0]
    # equidistant neighbors weigh the same
    pred = knn.knn_regress(x_train, y_train, _line(0.5), 2, 'distance')
    assert pred.item() == pytest.approx(6.0)


def test_kernel_weighting():
    x_train = _line(0.0, 1.0, 2.0, 3.0)
    y_train = torch.tensor([1.0, 2.0, 3.0, 4.0], dtype=constants.DTYPE)
    pred = knn.knn_regress(x_train, y_train, _line(0.9), 2, 'kernel').item()
    assert 1.0 <= pred <= 2.0
    # the closer neighbor gets more weight
    assert pred > 1.5
    with pytest.raises(ValueError):
        knn.knn_regress(x_train, y_train, _line(0.9), 4, 'kernel')
    with pytest.raises(ValueError):
        knn.knn_regress(x_train, y_train, _line(0.9), 2, 'gaussian')


def test_classify_majority_and_ties():
    x_train = _line(0.0, 1.0, 3.0, 3.1)
    y_train = torch.tensor([0, 1, 2, 2])
    # two-way tie at k = 2: nearest neighbor (index 1) wins
    assert knn.knn_classify(x_train, y_train, _line(0.9), 2).tolist() == [1]
    # clear majority
    assert knn.knn_classify(x_train, y_train, _line(3.0), 3).tolist() == [2]


def test_degrees_of_freedom():
    assert knn.degrees_of_freedom(500, 5) == 100.0


def test_error_path_train_error_zero_at_k1():
    gen = torch.Generator().manual_seed(2)
    x, y = simulate.knn_example(80, gen)
    path = knn.error_path(x[:60], y[:60], x[60:], y[60:], [1, 5, 20])
    assert sorted(path) == [1, 5, 20]
    assert path[1][0] == pytest.approx(0.0)
    assert path[20][0] > 0.0


def test_select_k_cv_returns_candidate():
    gen = torch.Generator().manual_seed(4)
    x, y = simulate.knn_example(60, gen)
    best, scores = knn.select_k_cv(x, y, [1, 5, 10], 3, gen)
    assert best in (1, 5, 10)
    assert set(scores) == {1, 5, 10}
    assert scores[best][0] == min(s[0] for s in scores.values())


def test_max_cv_k_is_smallest_fold_train_size():
    assert knn.max_cv_k(100, 5) == 80
    # 101 rows: one fold holds out 21
    assert knn.max_cv_k(101, 5) == 80
    assert knn.max_cv_k(20, 3) == 13


def test_select_k_cv_rejects_k_past_fold_train_size(monkeypatch):
    gen = torch.Generator().manual_seed(4)
    x, y = simulate.knn_example(20, gen)
    best, _ = knn.select_k_cv(x, y, range(1, 17), 5, gen)
    assert 1 <= best <= 16

    def fail(*args, **kwargs):
        raise AssertionError('no fold should be fit')
    monkeypatch.setattr(knn, 'knn_regress', fail)
    with pytest.raises(ValueError, match=r'\[1, 16\]'):
        knn.select_k_cv(x, y, range(1, 18), 5, gen)
    with pytest.raises(ValueError):
        knn.select_k_cv(x, y, [], 5, gen)


def test_error_path_rejects_k_past_train_size():
    gen = torch.Generator().manual_seed(2)
    x, y = simulate.knn_example(30, gen)
    with pytest.raises(ValueError):
        knn.error_path(x[:20], y[:20], x[20:], y[20:], [1, 21])
    with pytest.raises(ValueError):
        knn.error_path(x[:20], y[:20], x[20:], y[20:], [0, 5])


def test_bias_variance_variance_drops_with_k():
    gen = torch.Generator().manual_seed(5)
    x0 = torch.zeros(4, dtype=constants.DTYPE)
    result = knn.bias_variance(x0, knn.linear_target, [1, 50], 100, 1.0, 60, gen)
    bias2_1, var_1, err_1 = result[1]
    bias2_50, var_50, err_50 = result[50]
    assert var_1 > var_50
    assert err_1 == pytest.approx(1.0 + bias2_1 + var_1)
    assert bias2_50 >= 0.0
