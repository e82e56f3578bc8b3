#!/usr/bin/env python3
import argparse
import json
import random
from pathlib import Path
from typing import List, Optional

from conic_bridge.schemas import Cone, ConicProblem, SparseMatrix


def generate_random_socp(num_vars: int, soc_size: int, seed: Optional[int] = None) -> ConicProblem:
    """
    Random feasible problem: minimise t subject to ||b_y - A_y x|| <= t, 0 <= x <= 1.

    Variable 0 is t. Rows 0..num_vars-2 cap the remaining variables at 1, rows after
    that form one second-order cone whose leading row is t itself.
    """

    rng = random.Random(seed)
    n = num_vars
    rows: List[int] = []
    cols: List[int] = []
    vals: List[float] = []
    b: List[float] = []

    # x_j <= 1 for j >= 1
    for j in range(1, n):
        rows.append(len(b))
        cols.append(j)
        vals.append(1.0)
        b.append(1.0)
    num_linear = len(b)

    # leading row: b - Ax = t
    rows.append(len(b))
    cols.append(0)
    vals.append(-1.0)
    b.append(0.0)
    for _ in range(soc_size - 1):
        row = len(b)
        for j in range(1, n):
            rows.append(row)
            cols.append(j)
            vals.append(rng.uniform(-2.0, 2.0))
        b.append(rng.uniform(-3.0, 3.0))

    return ConicProblem(
        name="random-socp",
        c=[1.0] + [0.0] * (n - 1),
        A=SparseMatrix(shape=(len(b), n), rows=rows, cols=cols, vals=vals),
        b=b,
        constr_cones=[
            Cone(kind="NonNeg", indices=list(range(num_linear))),
            Cone(kind="SOC", indices=list(range(num_linear, len(b)))),
        ],
        var_cones=[Cone(kind="Free", indices=[0]), Cone(kind="NonNeg", indices=list(range(1, n)))],
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate random feasible SOCP instances.")
    parser.add_argument("--vars", type=int, default=3, help="Number of variables (including t)")
    parser.add_argument("--soc-size", type=int, default=3, help="Size of the second-order cone")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--count", type=int, default=1, help="Number of instances")
    parser.add_argument("--out", type=Path, default=None, help="Optional output file")
    args = parser.parse_args()

    instances = [
        generate_random_socp(args.vars, args.soc_size, (args.seed or 0) + idx)
        for idx in range(args.count)
    ]
    payload = [instance.model_dump() for instance in instances]

    if args.out:
        Path(args.out).write_text(json.dumps(payload, indent=2))
    else:
        print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
