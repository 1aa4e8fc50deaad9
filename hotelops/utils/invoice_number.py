"""Invoice number generation."""

import random
import string
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


def format_invoice_number(issued_at: datetime, random_part: str) -> str:
    return f"INV-{issued_at.strftime('%Y%m%d')}-{random_part}"


async def generate_invoice_number(db: AsyncSession, issued_at: datetime) -> str:
    """Generate a unique invoice number in format INV-YYYYMMDD-XXXXXX.

    Args:
        db: Database session for uniqueness check
        issued_at: Issue timestamp; supplies the date part

    Returns:
        str: Unique invoice number like 'INV-20250115-A3B7K9'
    """
    from hotelops.models.payment import Invoice

    while True:
        chars = string.ascii_uppercase + string.digits
        invoice_number = format_invoice_number(issued_at, "".join(random.choices(chars, k=6)))

        result = await db.execute(
            select(Invoice.id).where(Invoice.invoice_number == invoice_number)
        )
        if not result.scalar_one_or_none():
            return invoice_number
