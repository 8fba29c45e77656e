from typing import Any, Callable
from fastapi import FastAPI, status
from fastapi.requests import Request
from fastapi.responses import JSONResponse


class PricingException(Exception):
    """This is the base class for all pricing service errors"""
    pass


class RuleNotFound(PricingException):
    """Rule id does not exist in the rule store."""
    def __init__(self, rule_id: int):
        self.rule_id = rule_id
        super().__init__(f"Rule {rule_id} not found")


def create_exception_handler(status_code: int, initial_detail: Any) -> Callable[[Request, Exception], JSONResponse]:
    async def exception_handler(request: Request, exc: PricingException):
        return JSONResponse(
            content=initial_detail,
            status_code=status_code
        )

    return exception_handler


def register_all_errors(app: FastAPI):
    # Rule Not Found
    app.add_exception_handler(
        RuleNotFound,
        create_exception_handler(
            status_code=status.HTTP_404_NOT_FOUND,
            initial_detail={
                "message": "Rule not found",
                "error_code": "rule_not_found"
            }
        )
    )

    @app.exception_handler(500)
    async def internal_server_error_handler(request, exc):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "message": "Oops, something went wrong. Please try again later",
                "error_code": "server_error"
            }
        )

    @app.exception_handler(404)
    async def not_found_error_handler(request, exc):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "message": "Resource not found",
                "error_code": "not_found",
                "resolution": "Check the URL and try again"
            }
        )
