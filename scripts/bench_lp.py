#!/usr/bin/env python3
import json
import logging
import time
from pathlib import Path

from simplex_tableau.lp.simplex import simplex_solve
from simplex_tableau.problem import Problem
from simplex_tableau.schemas import SolveOptions
from scripts.generate_instances import generate_random_lp


def load_example(name: str) -> Problem:
    path = Path(__file__).resolve().parent.parent / "examples" / name
    return Problem.model_validate(json.loads(path.read_text()))


def main() -> None:
    logging.basicConfig(level=logging.WARNING)
    opts = SolveOptions()
    cases = [
        (f"examples/{name}", load_example(name))
        for name in ("production.json", "diet.json", "infeasible.json", "unbounded.json")
    ]
    for seed in range(3):
        cases.append((f"random-{seed}", generate_random_lp(6, 5, seed)))

    print("name,status,objective,iterations,time_ms")
    for name, problem in cases:
        start = time.perf_counter()
        solution = simplex_solve(problem, opts)
        elapsed_ms = (time.perf_counter() - start) * 1000
        print(
            f"{name},{solution.status},{solution.objective_value},{solution.iterations},{elapsed_ms:.2f}"
        )


if __name__ == "__main__":
    main()
