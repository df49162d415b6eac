import math
from typing import Literal

from pydantic import BaseModel, Field

from mcp_boilerplate.tools.base import create_error_result, create_success_result
from mcp_boilerplate.types import CallToolResult
from mcp_boilerplate.utilities.logging import get_logger

logger = get_logger(__name__)


class CalculatorParams(BaseModel):
    operation: Literal["add", "subtract", "multiply", "divide"] = Field(
        description="The arithmetic operation to perform"
    )
    a: int | float = Field(description="First number")
    b: int | float = Field(description="Second number")


async def calculator(params: CalculatorParams) -> CallToolResult:
    """Perform basic arithmetic calculations"""
    logger.debug("Calculator params: %s", params.model_dump())

    a, b = params.a, params.b
    try:
        match params.operation:
            case "add":
                result = a + b
            case "subtract":
                result = a - b
            case "multiply":
                result = a * b
            case "divide":
                if b == 0:
                    return create_error_result("Cannot divide by zero")
                result = a / b
    except ArithmeticError as e:
        logger.debug("Calculator %s failed: %s", params.operation, e)
        return create_error_result(str(e))

    if isinstance(result, float):
        if not math.isfinite(result):
            return create_error_result("Result is not a finite number")
        # JSON has a single number type; 6 / 3 is reported as 2, not 2.0
        if result.is_integer():
            result = int(result)
    return create_success_result(result)
