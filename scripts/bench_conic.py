#!/usr/bin/env python3
import json
import time
from pathlib import Path

from conic_bridge.lpqp.scipy_model import ScipyLPQPModel
from conic_bridge.reformulate.bridge import LPQPtoConicBridge
from conic_bridge.schemas import ConicProblem, SolveOptions
from scripts.generate_instances import generate_random_socp


def load_example(name: str) -> ConicProblem:
    path = Path(__file__).resolve().parent.parent / "examples" / name
    return ConicProblem.model_validate(json.loads(path.read_text()))


def main() -> None:
    opts = SolveOptions()
    cases = [
        ("examples/small_lp.json", load_example("small_lp.json")),
        ("examples/small_socp.json", load_example("small_socp.json")),
    ]
    for seed in range(3):
        cases.append((f"random-{seed}", generate_random_socp(4, 3, seed)))

    print("name,status,objective,auxiliary,quadratic,time_ms")
    for name, problem in cases:
        bridge = LPQPtoConicBridge(ScipyLPQPModel(opts))
        start = time.perf_counter()
        bridge.load_conic_problem(problem)
        bridge.optimize()
        elapsed_ms = (time.perf_counter() - start) * 1000
        objective = bridge.get_objval() if bridge.status() == "optimal" else None
        lpqp = bridge.lpqp_problem
        print(
            f"{name},{bridge.status()},{objective},{lpqp.num_aux},{len(lpqp.quad_constraints)},{elapsed_ms:.2f}"
        )


if __name__ == "__main__":
    main()
