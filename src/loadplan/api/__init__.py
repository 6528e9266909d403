"""JSON payload schemas for the solver."""

from .schemas import SolveRequest, SolveResponseModel, solve_payload

__all__ = ["SolveRequest", "SolveResponseModel", "solve_payload"]
