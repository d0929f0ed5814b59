import pytest
import torch

import constants
import viewer


def test_scale():
    t = torch.tensor([[1, 2], [3, 4]])
    assert viewer.scale(t, 2).tolist() == [
        [1, 1, 2, 2], [1, 1, 2, 2], [3, 3, 4, 4], [3, 3, 4, 4],
    ]
    assert torch.equal(viewer.scale(t, 1), t)
    with pytest.raises(ValueError):
        viewer.scale(t, 0)


def test_plot_line_one_column_per_line(recorder):
    x = torch.arange(5, dtype=torch.float64)
    viewer.plot_line(x, torch.stack([x, 2 * x]), ['a', 'b'], 'lines')
    name, args, kwargs = recorder.calls[0]
    assert name == 'line'
    assert args[0].size() == (5, 2)
    assert kwargs['env'] == constants.VISDOM_ENV
    assert kwargs['opts']['legend'] == ['a', 'b']


def test_plot_jitter_groups_by_key(recorder):
    viewer.plot_jitter({'b': [1.0, 2.0], 'a': [3.0]}, 'jitter')
    name, args, kwargs = recorder.calls[0]
    assert name == 'scatter'
    points = args[0]
    assert points[:, 1].tolist() == [3.0, 1.0, 2.0]
    assert kwargs['opts']['xticklabels'] == ['a', 'b']


def test_view_digit_rescales(recorder):
    side = constants.DIGIT_SIDE
    features = torch.linspace(-3, 5, side * side, dtype=torch.float64)
    viewer.view_digit(features, 7, upscale=2)
    name, args, kwargs = recorder.calls[0]
    assert name == 'image'
    img = args[0]
    assert img.size() == (1, 2 * side, 2 * side)
    assert img.min().item() == 0.0 and img.max().item() == 1.0
    assert '7' in kwargs['opts']['caption']
