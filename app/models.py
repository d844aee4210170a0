from pydantic import BaseModel, Field
from typing import Any, List, Optional
from fastapi.responses import JSONResponse


class StartTimerRequest(BaseModel):
    client: str = Field(min_length=1)
    project: str = Field(min_length=1)
    description: str = ""


class InvoiceLineItemRequest(BaseModel):
    """Line item as sent by API clients; constraints are enforced by the adapter."""
    description: str = ""
    hours: float = 0
    rate: float = 0


class GenerateInvoiceRequest(BaseModel):
    client_name: str = Field(min_length=1)
    client_email: str = Field(min_length=1)
    line_items: List[InvoiceLineItemRequest] = Field(default_factory=list)
    notes: str = ""
    date: str = ""


# API Response Envelope
class ApiResponse(BaseModel):
    """Standard API response envelope."""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    code: Optional[str] = None
    requestId: str = ""

    @classmethod
    def ok(cls, data: Any = None, request_id: str = "") -> "ApiResponse":
        """Create a success response."""
        return cls(success=True, data=data, requestId=request_id)

    @classmethod
    def failure(cls, code: str, message: str, request_id: str = "") -> "ApiResponse":
        """Create an error response."""
        return cls(success=False, error=message, code=code, requestId=request_id)

    def to_response(self, status_code: int = 200) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=self.model_dump(mode="json"),
        )
