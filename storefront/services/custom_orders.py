"""Custom (made-to-order) print requests"""

import logging
from dataclasses import dataclass, field
from typing import Any

from shop_api.errors import ValidationError
from shop_api.models import CustomOrder, SubmitCustomOrderInput
from shop_api.uploads import UploadFile, UploadOutcome, upload_sequentially
from .checkout import phone_digits
from .shop_client import ShopClient

logger = logging.getLogger(__name__)

# Model file extensions accepted by the print shop
ALLOWED_EXTENSIONS = (".stl", ".obj", ".3mf", ".step", ".stp", ".zip", ".png", ".jpg", ".jpeg")
MAX_FILE_SIZE = 50 * 1024 * 1024


@dataclass
class CustomOrderSubmission:
    order: CustomOrder
    uploads: list[UploadOutcome] = field(default_factory=list)

    @property
    def failed_uploads(self) -> list[UploadOutcome]:
        return [u for u in self.uploads if not u.ok]

    def to_dict(self) -> dict[str, Any]:
        return {
            "order": self.order.model_dump(by_alias=True),
            "uploads": [u.to_dict() for u in self.uploads],
            "confirmationPath": f"/order/{self.order.order_number}",
        }


def check_file(file: UploadFile) -> None:
    name = file.filename.lower()
    if not name.endswith(ALLOWED_EXTENSIONS):
        raise ValidationError(
            f"Недопустимый тип файла: {file.filename}",
            {"files": "Допустимые форматы: " + ", ".join(ALLOWED_EXTENSIONS)},
        )
    if len(file.content) > MAX_FILE_SIZE:
        raise ValidationError(
            f"Файл слишком большой: {file.filename}",
            {"files": "Максимальный размер файла 50 МБ"},
        )


def validate_request(order: SubmitCustomOrderInput) -> None:
    errors = {}
    if not order.customer_name.strip():
        errors["name"] = "Введите имя"
    if len(phone_digits(order.customer_phone)) < 10:
        errors["phone"] = "Некорректный номер телефона"
    if not (order.client_description or "").strip():
        errors["description"] = "Опишите, что нужно изготовить"
    if errors:
        raise ValidationError("Проверьте данные формы", errors)


async def submit_custom_order(
    shop: ShopClient,
    order: SubmitCustomOrderInput,
    files: list[UploadFile],
) -> CustomOrderSubmission:
    """
    Create the request, then attach files one by one. The order stands even
    if some uploads fail; each file reports its own outcome.
    """
    validate_request(order)
    for file in files:
        check_file(file)

    created = await shop.submit_custom_order(order)
    logger.info(f"Custom order {created.order_number} submitted with {len(files)} file(s)")

    async def upload(file: UploadFile) -> str:
        return await shop.upload_custom_order_file(
            created.id, file.filename, file.content, file.content_type
        )

    uploads = await upload_sequentially(files, upload)
    return CustomOrderSubmission(order=created, uploads=uploads)
