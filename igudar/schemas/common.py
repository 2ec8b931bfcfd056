"""
Shared response schemas.

Document the error envelope in OpenAPI so clients can see the failure
contract next to the happy path.
"""

from typing import List

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error envelope returned by every non-validation error handler."""

    error: bool = Field(default=True, description="Always ``true`` for errors")
    message: str = Field(
        ..., description="Human-readable error description", examples=["Property not found"]
    )


class ValidationErrorDetail(BaseModel):
    field: str = Field(
        ...,
        description="Path to the invalid field",
        examples=["body -> investment_amount"],
    )
    message: str = Field(..., examples=["Input should be greater than 0"])


class ValidationErrorResponse(BaseModel):
    """Body of a 422 response; ``details`` lists each failing field."""

    error: bool = Field(default=True, description="Always ``true`` for errors")
    message: str = Field(default="Validation failed")
    details: List[ValidationErrorDetail] = Field(..., description="Per-field validation failures")
