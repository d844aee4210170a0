from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from app.config import settings
from app.models import ApiResponse, GenerateInvoiceRequest
from app.tools.invoice import InvoiceAdapter
from app.utils.ids import request_id as get_request_id

router = APIRouter(prefix="/api/invoice", tags=["invoice"])


def get_invoice_adapter() -> InvoiceAdapter:
    return InvoiceAdapter(settings)


@router.post("/generate")
async def generate_invoice(
    request: Request,
    req: GenerateInvoiceRequest,
    invoices: InvoiceAdapter = Depends(get_invoice_adapter),
):
    """
    Generate a PDF invoice.
    Only the first line item reaches the generator; see /api/invoice/capabilities.
    """
    req_id = get_request_id(request.headers.get("x-request-id"))
    result = await run_in_threadpool(
        invoices.generate_invoice,
        req.client_name,
        req.client_email,
        [item.model_dump() for item in req.line_items],
        req.notes,
        req.date,
    )
    return ApiResponse.ok(data=result, request_id=req_id)


@router.get("/capabilities")
async def capabilities(request: Request):
    req_id = get_request_id(request.headers.get("x-request-id"))
    return ApiResponse.ok(
        data={"supports_multiple_line_items": InvoiceAdapter.SUPPORTS_MULTIPLE_LINE_ITEMS},
        request_id=req_id,
    )


@router.get("/preview")
async def preview_invoice(request: Request):
    req_id = get_request_id(request.headers.get("x-request-id"))
    return ApiResponse.failure(
        code="not_implemented",
        message="Invoice preview not yet implemented",
        request_id=req_id,
    ).to_response(status_code=501)
