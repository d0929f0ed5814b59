"""
For reading and writing data, and for carving it into train / test pieces.
"""

# imports
# ---

# builtins
import argparse
import csv
from typing import Tuple, List, Sequence
import os

# 3rd party
import torch
from tqdm import tqdm

# local
import constants


# types
# ---

Split = Tuple[torch.Tensor, torch.Tensor, torch.Tensor, torch.Tensor]


# lib functions
# ---

def which_exist(filenames: List[str]) -> List[str]:
    """
    Returns the subset of filenames that exist on disk.
    """
    return list(filter(lambda f: os.path.exists(f), filenames))


def split_tensor(data: torch.Tensor, label_cols: int = 1) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Splits 'all data' tensor into labels and features tensors.

    Returns 2-tuple of:
        (1) either a 1d (N) int64 vector (if label_cols == 1),
                or a 2d (N x L) int64 matrix (if label_cols > 1)
        (2) a 2d (N x D) matrix of datums x features (constants.DTYPE)
    """
    # have to be careful when selecting one column:
    # - selecting data[:, 0]  gives a 1d (N) vector
    # - selecting data[:, :1] gives a 2d (N x 1) matrix
    if label_cols == 1:
        labels = data[:, 0].long()
    else:
        labels = data[:, :label_cols].long()
    features = data[:, label_cols:].to(constants.DTYPE)
    return labels, features


def csv_to_tensor(filename: str) -> torch.Tensor:
    """
    Loads all data from filename in csv format; returns in a single tensor.
    """
    with open(filename, 'r') as f:
        rows = [r for r in csv.reader(f, quoting=csv.QUOTE_NONNUMERIC)]
    return torch.tensor(rows, dtype=constants.DTYPE)


def csv_to_tensors(filename: str) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Loads data from filename in csv format; return label (col 0) and features
    (rest) tensors.
    """
    return split_tensor(csv_to_tensor(filename))


def tensor_to_csv(t: torch.Tensor, filename: str) -> None:
    """
    Writes tensor t to filename on disk in csv format, creating parent
    directories as needed.
    """
    os.makedirs(os.path.dirname(filename), exist_ok=True)
    with open(filename, 'w', newline='') as f:
        w = csv.writer(f)
        w.writerows(t.tolist())


def tensor_to_bin(t: torch.Tensor, filename: str) -> None:
    """
    Writes tensor t to filename on disk in torch.save(...) format, creating
    directories as needed.
    """
    os.makedirs(os.path.dirname(filename), exist_ok=True)
    torch.save(t, filename)


def bin_to_tensor(filename: str) -> torch.Tensor:
    """
    Loads tensor from disk at filename in torch.save(...) format.
    """
    return torch.load(filename)


def bin_to_tensors(filename: str, label_cols: int = 1) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Loads data from filename in torch.save(...) format; return label
    (label_cols) and features (rest) tensors.
    """
    return split_tensor(bin_to_tensor(filename), label_cols)


def bias_tensor(t: torch.Tensor) -> torch.Tensor:
    """
    Adds bias column (all 1s) to `t`.

    Arguments:
        t 2D (N x D) tensor

    Returns:
          2D (N x D+1) tensor, with final bias column (all 1s)
    """
    n = len(t)
    bias_col = torch.ones(n, 1, dtype=t.dtype, device=t.device)
    return torch.cat([t, bias_col], dim=1)


def labels_to_onehot(labels: torch.Tensor, opts: int) -> torch.Tensor:
    """
    Turns 1d (N) class-label tensor `labels` into 2d (N x opts) onehot tensor
    and returns it.

    Arguments:
        labels: 1d (N) vector of class labels in [0, opts)
        opts: number of class label options (will be output cols)

    Returns:
        2d (N x opts) onehot label matrix (int64)
    """
    n, = labels.size()
    label_idx = labels.long().view(-1, 1)
    onehot = torch.zeros(n, opts, dtype=torch.long, device=labels.device)
    return onehot.scatter_(1, label_idx, 1)


def head_split(x: torch.Tensor, y: torch.Tensor, n_train: int) -> Split:
    """
    The first `n_train` rows are train, the rest are test.

    Returns:
        x_train, y_train, x_test, y_test
    """
    if not 0 < n_train < len(x):
        raise ValueError('n_train ({}) must be in (0, {})'.format(n_train, len(x)))
    return x[:n_train], y[:n_train], x[n_train:], y[n_train:]


def random_split(
        x: torch.Tensor, y: torch.Tensor, n_train: int,
        generator: torch.Generator) -> Split:
    """
    Like head_split(...), but rows are shuffled first.
    """
    perm = torch.randperm(len(x), generator=generator).to(x.device)
    return head_split(x[perm], y[perm], n_train)


def select_classes(
        labels: torch.Tensor, features: torch.Tensor,
        classes: Sequence[int]) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Keeps only the rows whose label is one of `classes` (e.g., digits 4 and 9).
    """
    keep = torch.zeros(len(labels), dtype=torch.bool, device=labels.device)
    for c in classes:
        keep |= labels == c
    return labels[keep], features[keep]


def load_digits(stage: str) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Loads one of the 'train', 'val', or 'test' digit splits, preferring the
    torch.save(...) stage and falling back to the normalized csv.

    Raises FileNotFoundError if neither exists.
    """
    choices = {
        'train': (constants.TRAIN_TENSOR, constants.TRAIN_NORM),
        'val': (constants.VAL_TENSOR, constants.VAL_NORM),
        'test': (constants.TEST_TENSOR, constants.TEST_NORM),
    }
    if stage not in choices:
        raise ValueError('Unknown stage {}; want one of {}'.format(stage, sorted(choices)))
    bin_fn, csv_fn = choices[stage]
    if os.path.exists(bin_fn):
        return bin_to_tensors(bin_fn)
    if os.path.exists(csv_fn):
        return csv_to_tensors(csv_fn)
    raise FileNotFoundError('Neither {} nor {} exists'.format(bin_fn, csv_fn))


# script
# --

def resplit() -> None:
    """
    Pulls the last constants.VAL_SIZE rows of the original train set off as
    val, and copies test over unchanged.
    """
    outs = [constants.TRAIN_RESPLIT, constants.VAL_RESPLIT, constants.TEST_RESPLIT]
    existing = which_exist(outs)
    if len(existing) > 0:
        print('ERROR: Not resplitting because the following files already '
            'exist: {}'.format(existing))
        return
    missing = [f for f in [constants.TRAIN_ORIG, constants.TEST_ORIG] if not os.path.exists(f)]
    if len(missing) > 0:
        print('ERROR: Missing original data files: {}'.format(missing))
        return

    print('dataio.resplit :: start')
    train = csv_to_tensor(constants.TRAIN_ORIG)
    cut = len(train) - constants.VAL_SIZE
    tensor_to_csv(train[:cut], constants.TRAIN_RESPLIT)
    tensor_to_csv(train[cut:], constants.VAL_RESPLIT)
    tensor_to_csv(csv_to_tensor(constants.TEST_ORIG), constants.TEST_RESPLIT)
    print('dataio.resplit :: finish')


def convert() -> None:
    """
    Converts files from this project from csv to torch.save(...) format.
    """
    worklist = [
        (constants.TRAIN_NORM, constants.TRAIN_TENSOR),
        (constants.VAL_NORM, constants.VAL_TENSOR),
        (constants.TEST_NORM, constants.TEST_TENSOR),
    ]

    # pre-check: don't convert if any dest. files exist
    existing = which_exist([out for inp, out in worklist])
    if len(existing) > 0:
        print('ERROR: Not converting because the following files already '
            'exist: {}'.format(existing))
        return
    missing = [inp for inp, out in worklist if not os.path.exists(inp)]
    if len(missing) > 0:
        print('ERROR: Missing normalized files: {}. Run normalization.py first.'.format(missing))
        return

    print('dataio.convert :: start')
    for csv_fn, bin_fn in tqdm(worklist):
        print('\t Converting {} to {}...'.format(csv_fn, bin_fn))
        tensor_to_bin(csv_to_tensor(csv_fn), bin_fn)
    print('dataio.convert :: finish')


def main() -> None:
    parser = argparse.ArgumentParser(description='Digit data stages.')
    choice = parser.add_mutually_exclusive_group(required=True)
    choice.add_argument('--resplit', action='store_true')
    choice.add_argument('--convert', action='store_true')
    args = parser.parse_args()
    if args.resplit:
        resplit()
    if args.convert:
        convert()


if __name__ == '__main__':
    main()
