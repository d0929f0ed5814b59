"""
Runs one of the experiments. Plots go to visdom (start a server with
`python -m visdom.server`); numbers are printed.
"""

# imports
# ---

# builtins
import argparse

# 3rd party
import torch

# local
import constants
import discriminant
import knn
import logistic
import regression
import simstudy
import splines
import subset


def main() -> None:
    parser = argparse.ArgumentParser(description='Statistical learning experiments.')
    choice = parser.add_mutually_exclusive_group(required=True)
    choice.add_argument('--knn', action='store_true', help='k-NN bias / variance')
    choice.add_argument('--subset', action='store_true', help='best subset, forward, backward')
    choice.add_argument('--solvers', action='store_true', help='OLS / ridge / lasso solvers compared')
    choice.add_argument('--digits', action='store_true', help='LDA / QDA / NB on digits')
    choice.add_argument('--discriminant', action='store_true', help='LDA / QDA / NB on simulated classes')
    choice.add_argument('--shrinkage', action='store_true', help='ridge / lasso simulation study')
    choice.add_argument('--splines', action='store_true', help='polynomial and spline regression')
    choice.add_argument('--logistic', action='store_true', help='penalized logistic regression')
    args = parser.parse_args()

    torch.manual_seed(constants.SEED)

    if args.knn:
        knn.experiment()
    if args.subset:
        subset.experiment()
    if args.solvers:
        regression.solvers()
    if args.digits:
        discriminant.digits()
    if args.discriminant:
        discriminant.simulated()
    if args.shrinkage:
        simstudy.experiment()
    if args.splines:
        splines.experiment()
    if args.logistic:
        logistic.simulated()
        logistic.digits()


if __name__ == '__main__':
    main()
