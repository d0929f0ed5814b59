"""
Per project constants.

These aren't settings (like hyperparameters) but per-project things that a
user might want to change.
"""

# 3rd party
import torch

# digit data processing stages. Effects cumulative (e.g., normalized is also
# resplit):
# - (1) original   (downloaded)
# - (2) resplit    (pulled off some of train for val)
# - (3) normalized (zero mean, unit variance per feature)
# - (4) tensor     (using torch.save(...) instead of a CSV format)

# filenames
TRAIN_ORIG = "data/original/mnist_train.csv"
TEST_ORIG = "data/original/mnist_test.csv"

TRAIN_RESPLIT = "data/processed/resplit/mnist_train.csv"
VAL_RESPLIT = "data/processed/resplit/mnist_val.csv"
TEST_RESPLIT = "data/processed/resplit/mnist_test.csv"

TRAIN_NORM = "data/processed/normalized/mnist_train.csv"
VAL_NORM = "data/processed/normalized/mnist_val.csv"
TEST_NORM = "data/processed/normalized/mnist_test.csv"

TRAIN_TENSOR = "data/processed/tensor/mnist_train.tensor"
VAL_TENSOR = "data/processed/tensor/mnist_val.tensor"
TEST_TENSOR = "data/processed/tensor/mnist_test.tensor"

# how many of the original train rows become val during resplit
VAL_SIZE = 10000

# digit images are 28 x 28
DIGIT_SIDE = 28

# numerics. everything is done in double precision; subset selection and the
# discriminant covariances are too ill-conditioned for float32.
DTYPE = torch.float64
DEVICE = torch.device('cuda' if torch.cuda.is_available() else 'cpu')

# random seed used by the experiments
SEED = 598

# visdom
VISDOM_ENV = "statlearn"
