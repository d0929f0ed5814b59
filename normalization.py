"""
Handles per-feature normalization to zero mean and unit variance.
"""

# imports
# ---

# builtins
import os
from typing import List, Tuple

# 3rd party
import numpy as np  # for the epsilon definition and float comparison
import torch

# local
import constants
import dataio

# constants
# ---

# practically defined; this is as close as we can expect for checking float eq
# when normalizing.
CHECK_EPSILON = 1e-5


# lib functions
# ---

def feature_stats(features: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Returns per-feature (column) means and standard deviations.

    Dimension is 0 because we average *along* the 0th dimension (data rows).
    Slightly counter-intuitive because we *want* averages for dimension 1
    (columns), but we specify this by saying to average *along* the 0th
    dimension.
    """
    return features.mean(0), features.std(0)


def normalize(
        features: torch.Tensor, means: torch.Tensor,
        stds: torch.Tensor, check: bool = False) -> torch.Tensor:
    """
    Arguments:
        features: N x D
        means: D
        stds: D
        check: whether to ensure that means are 0 and variances are 1 (or 0, if
            all data 0). Only makes sense for train (on which data computed).

    Returns:
        N x D
    """
    # std could be 0 in some dimensions (e.g. border pixels of digits), which
    # results in NaN after division. Adding epsilon keeps those columns at 0
    # (every element was equal to the mean anyway) and has no effect on any
    # "normal" std.
    epsilon = np.finfo(float).eps
    norm = (features - means) / (stds + epsilon)

    if check:
        # ensure each mean 0
        new_means = norm.mean(0)
        for i, m in enumerate(new_means.tolist()):
            if not np.isclose(0.0, m, atol=CHECK_EPSILON):
                print('ERROR: Dimension {} has mean {}, wanted 0.0'.format(
                    i, m
                ))

        # ensure each variance entry 1 or 0
        variances = norm.var(0)
        for i, v in enumerate(variances.tolist()):
            if not (np.isclose(0.0, v, atol=CHECK_EPSILON) or
                    np.isclose(1.0, v, atol=CHECK_EPSILON)):
                print(
                    'ERROR: Dimension {} has variance {}, '
                    'wanted 0.0 or 1.0'.format(
                        i, v
                    )
                )

    return norm


def standardize(
        train: torch.Tensor, *others: torch.Tensor) -> Tuple[List[torch.Tensor], Tuple[torch.Tensor, torch.Tensor]]:
    """
    Normalizes train with its own statistics, and every matrix in `others`
    with train's statistics.

    Returns:
        [train_norm, *others_norm], (means, stds)
    """
    means, stds = feature_stats(train)
    normed = [normalize(train, means, stds)]
    normed += [normalize(o, means, stds) for o in others]
    return normed, (means, stds)


def center(y: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Returns (y - mean(y), mean(y)). For 2d y, centers each column.
    """
    mean = y.mean(0)
    return y - mean, mean


# script functions
# ---

def normalize_and_save(
        labels: torch.Tensor, features: torch.Tensor, out_fn: str,
        means: torch.Tensor, stds: torch.Tensor,
        check: bool = False) -> None:
    """
    Helper
    """
    norm = normalize(features, means, stds, check)
    result = torch.cat([labels.to(norm.dtype).view(-1, 1), norm], dim=1)
    dataio.tensor_to_csv(result, out_fn)


def normalize_data(
        train: Tuple[str, str], worklist: List[Tuple[str, str]]) -> None:
    train_unnorm_fn, train_norm_fn = train

    train_labels, train_unnorm_features = dataio.csv_to_tensors(
        train_unnorm_fn)
    means, stds = feature_stats(train_unnorm_features)

    # normalize and save train
    normalize_and_save(
        train_labels, train_unnorm_features, train_norm_fn, means, stds, True)

    # normalize others (probably val and test)
    for raw_fn, norm_fn in worklist:
        normalize_and_save(
            *dataio.csv_to_tensors(raw_fn), norm_fn, means, stds, False)


def main() -> None:
    # we provide tuples of: (
    #     where the unnormalized file exists,
    #     where we want the normalized file to go
    # )
    # train is special because (a) it's used to define the normalization, (b)
    # we don't want to load it twice.
    train = (constants.TRAIN_RESPLIT, constants.TRAIN_NORM)
    worklist = [
        (constants.VAL_RESPLIT, constants.VAL_NORM),
        (constants.TEST_RESPLIT, constants.TEST_NORM),
    ]

    existing = dataio.which_exist([train[1]] + [w[1] for w in worklist])
    if len(existing) > 0:
        print('ERROR: The following normalized files already exist: {}'.format(
            existing))
        return
    missing = [f for f in [train[0]] + [w[0] for w in worklist] if not os.path.exists(f)]
    if len(missing) > 0:
        print('ERROR: Missing resplit files: {}. Run dataio.py --resplit first.'.format(missing))
        return

    print('normalization.normalize_data :: start')
    normalize_data(train, worklist)
    print('normalization.normalize_data :: finish')


if __name__ == '__main__':
    main()
