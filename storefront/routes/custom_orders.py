"""Custom order routes"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from shop_api.models import SubmitCustomOrderInput
from shop_api.uploads import UploadFile as PendingUpload
from ..core.session import StorefrontSession
from ..services.custom_orders import submit_custom_order
from .deps import get_session

router = APIRouter(prefix="/api/custom-orders", tags=["Custom Orders"])


@router.post("")
async def create_custom_order(
    name: str = Form(...),
    phone: str = Form(...),
    description: str = Form(...),
    email: Optional[str] = Form(None),
    payment_method: str = Form("card"),
    delivery_method: str = Form("pickup"),
    delivery_address: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    files: list[UploadFile] = File(default=[]),
    session: StorefrontSession = Depends(get_session),
):
    """
    Submit a print request with model files.

    Files are uploaded one by one after the order exists; the response lists
    the outcome of each.
    """
    order = SubmitCustomOrderInput(
        customer_name=name,
        customer_phone=phone,
        customer_email=email or None,
        client_description=description,
        payment_method=payment_method,
        delivery_method=delivery_method,
        delivery_address=delivery_address or None,
        notes=notes or None,
    )

    pending = []
    for upload in files:
        pending.append(
            PendingUpload(
                filename=upload.filename or "file",
                content=await upload.read(),
                content_type=upload.content_type or "application/octet-stream",
            )
        )

    submission = await submit_custom_order(session.shop, order, pending)
    return submission.to_dict()
