from __future__ import annotations

import logging
import os

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from .errors import DimensionMismatchError, UnsupportedConeError
from .lpqp.scipy_model import ScipyLPQPModel
from .reformulate.bridge import LPQPtoConicBridge
from .reformulate.utils import build_lpqp_problem
from .schemas import SUPPORTED_CONES, ConicProblem, ConicSolution, SolveOptions, as_json_floats

logger = logging.getLogger(__name__)

app = FastMCP("Conic Bridge")


@app.tool()
def reformulate_conic(problem: ConicProblem) -> dict:
    """Rewrite a conic problem as an LP with quadratic constraints and return it as JSON."""
    try:
        lpqp = build_lpqp_problem(
            problem.c, problem.A.to_scipy(), problem.b, problem.constr_cones, problem.var_cones
        )
    except (UnsupportedConeError, DimensionMismatchError) as exc:
        return {"error": str(exc), "problem": None}
    return {"problem": lpqp.to_dict()}


@app.tool()
def solve_conic(problem: ConicProblem, options: SolveOptions | None = None) -> dict:
    """
    Solve a conic problem through the LP/QP bridge.

    ``x`` holds the original variables; ``x_extended`` and ``reduced_costs`` are
    reported in the padded space that includes auxiliary variables.
    """
    backend = ScipyLPQPModel(options or SolveOptions())
    bridge = LPQPtoConicBridge(backend)
    try:
        bridge.load_conic_problem(problem)
    except (UnsupportedConeError, DimensionMismatchError) as exc:
        return {"error": str(exc), "solution": None}

    try:
        bridge.optimize()
    except ValueError as exc:
        return {"error": f"Failed to solve problem: {exc}", "solution": None}

    lpqp = bridge.lpqp_problem
    status = bridge.status()
    x_extended = objective = reduced_costs = None
    if status == "optimal":
        solution = bridge.get_solution()
        x_extended = [float(v) for v in solution]
        objective = float(bridge.get_objval())
        reduced_costs = as_json_floats(bridge.get_reduced_costs())

    result = ConicSolution(
        status=status,
        objective_value=objective,
        x=None if x_extended is None else x_extended[: bridge.num_var()],
        x_extended=x_extended,
        reduced_costs=reduced_costs,
        num_variables=bridge.num_var(),
        num_auxiliary=lpqp.num_aux,
        num_linear_constraints=bridge.num_constr(),
        num_quadratic_constraints=len(lpqp.quad_constraints),
        message=backend.message,
    )
    logger.info("solve_conic '%s' finished with status %s", problem.name, status)
    return {"solution": result.model_dump()}


@app.tool()
def supported_cones() -> list:
    "List the cone kinds the bridge can reformulate."
    return list(SUPPORTED_CONES)


if __name__ == "__main__":
    import sys

    transport = os.environ.get("MCP_TRANSPORT", "stdio")

    if transport == "stdio" or "--stdio" in sys.argv:
        app.run(transport="stdio")
    else:
        port = int(os.environ.get("PORT", "8081"))
        app.settings.host = "0.0.0.0"
        app.settings.port = port
        app.settings.streamable_http_path = "/mcp"
        app.settings.transport_security = TransportSecuritySettings(
            enable_dns_rebinding_protection=False,
            allowed_hosts=["*"],
            allowed_origins=["*"],
        )
        app.run(transport="streamable-http")
