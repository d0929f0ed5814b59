"""
For looking at data and results. Currently using 'visdom' web dashboard.

The client connects on first plot, so importing this module never needs a
running server. Start one with `python -m visdom.server` and open
http://localhost:8097/env/statlearn
"""

# imports
# ---

# builtins
import random
from typing import List, Dict, Optional, Sequence

# 3rd party
import torch
import visdom

# local
import constants


# globals
# ---
_vis: Optional[visdom.Visdom] = None


# code
# ---

def get_vis() -> visdom.Visdom:
    global _vis
    if _vis is None:
        _vis = visdom.Visdom()
    return _vis


def scale(orig: torch.Tensor, scale: int) -> torch.Tensor:
    """
    Pixel-perfect upscaling

    Arguments:
        orig: 2D tensor n x m
        scale: must be >= 1

    Returns:
        scale*n x scale*m
    """
    if scale < 1:
        raise ValueError('scale ({}) must be >= 1'.format(scale))
    # each input pixel becomes a scale x scale block
    return orig.repeat_interleave(scale, dim=0).repeat_interleave(scale, dim=1)


def jitter(mag: float = 0.1) -> float:
    return random.uniform(-mag, mag)


def plot_jitter(data: Dict[str, List[float]], win: str = 'my-scatter', opts: Dict = {}) -> None:
    """
    data is a map from named values to the list of their data points
    win is the visdom window name to plot into
    """
    n = sum(len(v) for v in data.values())
    t = torch.zeros(n, 2)
    idx = 0
    keys = sorted(data.keys())
    for x, k in enumerate(keys):
        for y in data[k]:
            t[idx,0] = x + jitter()
            t[idx,1] = y
            idx += 1
    baseopts = {
        'title': win,
        'xtickvals': list(range(len(keys))),
        'xticklabels': keys,
    }
    get_vis().scatter(t, win=win, env=constants.VISDOM_ENV, opts={**baseopts, **opts})


def plot_bar(
        x: torch.Tensor, legend: List[str] = [], win: str = 'my-bar',
        opts: Dict = {}) -> None:
    """
    Arguments:
        x: 1d (N) bar heights, or 2d (N x M) for M stacked / grouped series
        legend: series names (only used for 2d x)
        win: visdom window name (also the title)
        opts: extra visdom options
    """
    baseopts = dict(title=win, legend=legend) if legend else dict(title=win)
    get_vis().bar(x, win=win, env=constants.VISDOM_ENV, opts={**baseopts, **opts})


def plot_line(
        x: torch.Tensor, ys: torch.Tensor, legend: List[str] = [],
        win: str = 'my-line', opts: Dict = {}) -> None:
    """
    Arguments:
        x:  1d (N) x values
        ys: 1d (N) y values, or
            2d (M x N) y values for M lines, one row per line
    """
    if len(ys.size()) > 1:
        ys = ys.t()
    baseopts = dict(title=win, legend=legend) if legend else dict(title=win)
    get_vis().line(ys, x, win=win, env=constants.VISDOM_ENV, opts={**baseopts, **opts})


def plot_scatter(
        points: torch.Tensor, labels: Optional[torch.Tensor] = None,
        legend: Sequence[str] = (), win: str = 'my-points', opts: Dict = {}) -> None:
    """
    Arguments:
        points: 2d (N x 2) coordinates
        labels: optional 1d (N) group labels in 1..K (visdom's convention)
        legend: names of the K groups
    """
    baseopts: Dict = dict(title=win)
    if legend:
        baseopts['legend'] = list(legend)
    get_vis().scatter(points, labels, win=win, env=constants.VISDOM_ENV, opts={**baseopts, **opts})


def plot_heatmap(
        m: torch.Tensor, rownames: Sequence[str], columnnames: Sequence[str],
        win: str = 'my-heatmap', opts: Dict = {}) -> None:
    """
    Arguments:
        m: 2d (R x C) values; row 0 is drawn at the bottom
        rownames: R row labels
        columnnames: C column labels
    """
    baseopts = dict(
        title=win, rownames=list(rownames), columnnames=list(columnnames))
    get_vis().heatmap(m, win=win, env=constants.VISDOM_ENV, opts={**baseopts, **opts})


def view_digit(
        features: torch.Tensor, label: int, win: str = 'digit',
        upscale: int = 10) -> None:
    """
    Shows one flattened digit image.

    Arguments:
        features: 1d (side * side) pixel values, row-major
        label: its class label (goes in the caption)
        upscale: how much bigger to draw it
    """
    # visdom takes C x H x W. we only have 1 channel (b/w). pixels are laid
    # out as row0, then row1, ..., which is how view(...) fills the matrix.
    side = constants.DIGIT_SIDE
    img = features.view(side, side).float()
    # normalized digits can be negative; rescale into [0, 1] for display
    lo, hi = img.min(), img.max()
    if hi > lo:
        img = (img - lo) / (hi - lo)
    bigger = scale(img, upscale).unsqueeze(0)
    get_vis().image(bigger, win=win, env=constants.VISDOM_ENV, opts={
        'caption': 'this should be a {}'.format(label),
    })
