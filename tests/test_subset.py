import math

import pytest
import torch

import constants
import simulate
import subset


def _data(n=100, d=5, seed=0):
    gen = torch.Generator().manual_seed(seed)
    beta = torch.zeros(d, dtype=constants.DTYPE)
    beta[:2] = torch.tensor([3.0, -2.0], dtype=constants.DTYPE)
    return simulate.linear_data(n, beta, 0.5, None, gen)


def test_fit_rss_empty_model_is_total_sum_of_squares():
    x, y = _data()
    tss = (y - y.mean()).pow(2).sum().item()
    assert subset.fit_rss(x, y, ()) == pytest.approx(tss)
    assert subset.fit_rss(x, y, (0, 1)) < subset.fit_rss(x, y, (0,))


def test_best_subset_finds_true_features():
    x, y = _data()
    path = subset.best_subset(x, y)
    assert sorted(path) == [0, 1, 2, 3, 4, 5]
    assert path[2]['features'] == (0, 1)
    rss = [path[s]['rss'] for s in sorted(path)]
    assert all(a >= b - 1e-9 for a, b in zip(rss, rss[1:]))


def test_best_subset_never_worse_than_stepwise():
    x, y = _data(seed=3)
    best = subset.best_subset(x, y)
    forward = subset.forward_selection(x, y)
    backward = subset.backward_elimination(x, y)
    for size in best:
        assert best[size]['rss'] <= forward[size]['rss'] + 1e-9
        assert best[size]['rss'] <= backward[size]['rss'] + 1e-9


def test_stepwise_paths():
    x, y = _data()
    forward = subset.forward_selection(x, y, max_size=3)
    assert sorted(forward) == [0, 1, 2, 3]
    assert forward[1]['features'] == (0,)
    assert forward[2]['features'] == (0, 1)
    backward = subset.backward_elimination(x, y)
    assert backward[5]['features'] == (0, 1, 2, 3, 4)
    assert backward[2]['features'] == (0, 1)
    assert backward[0]['features'] == ()


def test_size_limits():
    x, y = _data()
    with pytest.raises(ValueError):
        subset.forward_selection(x, y, max_size=6)
    with pytest.raises(ValueError):
        subset.backward_elimination(x[:6], y[:6])
    wide = torch.zeros(30, subset.MAX_EXHAUSTIVE + 1, dtype=constants.DTYPE)
    with pytest.raises(ValueError):
        subset.best_subset(wide, torch.zeros(30, dtype=constants.DTYPE))


def test_criteria_formulas():
    assert subset.mallows_cp(10.0, 50, 3, 2.0) == pytest.approx(-39.0)
    assert subset.aic(50.0, 50, 2) == pytest.approx(4.0)
    assert subset.bic(50.0, 50, 2) == pytest.approx(2 * math.log(50))
    assert subset.adjusted_r2(10.0, 100.0, 11, 1) == pytest.approx(0.9)


def test_criteria_choose_supersets_of_truth():
    x, y = _data()
    path = subset.best_subset(x, y)
    scores = subset.criteria(path, x, y)
    assert set(scores) == set(subset.CRITERIA)
    for c in subset.CRITERIA:
        fit = subset.choose(path, scores, c)
        assert {0, 1} <= set(fit['features'])
    # the full model's Cp is p by construction
    assert scores['cp'][5] == pytest.approx(6.0)


def test_choose_ties_go_to_smaller_model():
    path: subset.Path = {
        1: {'features': (0,), 'rss': 1.0},
        2: {'features': (0, 1), 'rss': 1.0},
    }
    scores: subset.Scores = {
        'cp': {1: 3.0, 2: 3.0}, 'aic': {1: 1.0, 2: 0.0},
        'bic': {1: 0.0, 2: 0.0}, 'adjr2': {1: 0.5, 2: 0.5},
    }
    assert subset.choose(path, scores, 'cp')['features'] == (0,)
    assert subset.choose(path, scores, 'adjr2')['features'] == (0,)
    assert subset.choose(path, scores, 'aic')['features'] == (0, 1)
    with pytest.raises(ValueError):
        subset.choose(path, scores, 'rss')


def test_criteria_handle_exact_fits():
    gen = torch.Generator().manual_seed(6)
    x = torch.randn(30, 4, generator=gen, dtype=constants.DTYPE)
    y = 2 * x[:, 0] + 1
    path = subset.best_subset(x, y)
    scores = subset.criteria(path, x, y)
    for c in subset.CRITERIA:
        assert all(math.isfinite(s) for s in scores[c].values())
        assert subset.choose(path, scores, c)['features'] == (0,)


def test_criteria_reject_constant_y():
    x, _ = _data(n=30)
    y = torch.ones(30, dtype=constants.DTYPE)
    path = subset.best_subset(x, y)
    with pytest.raises(ValueError, match='constant'):
        subset.criteria(path, x, y)


def test_best_subset_keeps_first_of_equal_fits():
    x, y = _data(n=40, d=2)
    x = torch.cat([x[:, :1], x], dim=1)
    path = subset.best_subset(x, y)
    assert path[1]['features'] == (0,)
    assert path[1]['rss'] == subset.fit_rss(x, y, (1,))
