"""Redemption workflow - lifecycle of a student's store item request.

    pending --approve--> approved   (terminal)
    pending --reject---> rejected   (terminal)

Points are held by deducting them when the request is created and stock
is reserved at the same moment.  Approval only confirms fulfilment;
rejection refunds the points and returns the unit to stock.

Transitions are guarded ``UPDATE ... WHERE status = 'pending'``
statements, so two concurrent approve/reject calls cannot both succeed.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.item_request import ItemRequest, RequestStatus
from app.services.errors import (
    ConsistencyError,
    DuplicateRequestError,
    InvalidRequestError,
    InvalidStateTransitionError,
    NotFoundError,
    TrackerError,
)
from app.services.inventory import InventoryGuard
from app.services.ledger import LedgerService

logger = logging.getLogger(__name__)

PURCHASE_REASON = "store request"
REFUND_REASON = "request rejected"


class RedemptionWorkflow:
    """Create, approve and reject redemption requests."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        ledger: LedgerService | None = None,
        inventory: InventoryGuard | None = None,
    ) -> None:
        self._db = db
        self._ledger = ledger or LedgerService(db)
        self._inventory = inventory or InventoryGuard(db)

    async def get_request(self, request_id: int) -> ItemRequest:
        result = await self._db.execute(
            select(ItemRequest)
            .where(ItemRequest.id == request_id)
            .options(
                selectinload(ItemRequest.student),
                selectinload(ItemRequest.tutor),
                selectinload(ItemRequest.item),
            )
            .execution_options(populate_existing=True)
        )
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFoundError(f"Request {request_id} not found")
        return request

    async def create_request(self, student_id: int, item_id: int) -> ItemRequest:
        """Reserve one unit, deduct its price and open a pending request.

        If the deduction fails the reservation is released before the
        error propagates.  A pending request that a concurrent caller
        inserted first trips the partial unique index; the failed flush
        rolls the transaction back and ``DuplicateRequestError`` is raised.
        """
        student = await self._ledger.get_student(student_id)
        if student.tutor_id is None:
            raise InvalidRequestError("Student does not have an assigned tutor")

        item = await self._inventory.get_item(item_id)
        price = item.points_required

        existing = await self._db.execute(
            select(ItemRequest.id).where(
                ItemRequest.student_id == student_id,
                ItemRequest.item_id == item_id,
                ItemRequest.status == RequestStatus.PENDING.value,
            )
        )
        if existing.first() is not None:
            raise DuplicateRequestError(
                "You already have a pending request for this item"
            )

        await self._inventory.reserve(item_id)
        try:
            await self._ledger.deduct(
                student_id, price, reason=PURCHASE_REASON, actor_id=student_id
            )
        except TrackerError:
            await self._compensate_reservation(item_id)
            raise

        request = ItemRequest(
            student_id=student_id,
            tutor_id=student.tutor_id,
            item_id=item_id,
            status=RequestStatus.PENDING.value,
            points_spent=price,
        )
        self._db.add(request)
        try:
            await self._db.flush()
        except IntegrityError as exc:
            logger.warning(
                "Refused duplicate request by student %d for item %d",
                student_id, item_id,
            )
            raise DuplicateRequestError(
                "You already have a pending request for this item"
            ) from exc
        logger.info(
            "Student %d requested item %d for %d points (request %d)",
            student_id, item_id, price, request.id,
        )
        return await self.get_request(request.id)

    async def approve(self, request_id: int, actor_id: int) -> ItemRequest:
        """Confirm fulfilment. No ledger or stock change happens here."""
        await self._transition(request_id, RequestStatus.APPROVED, actor_id)
        logger.info("Request %d approved by %d", request_id, actor_id)
        return await self.get_request(request_id)

    async def reject(self, request_id: int, actor_id: int, note: str | None) -> ItemRequest:
        """Reject with a reason, refund the held points and restock the item."""
        note = (note or "").strip()
        if not note:
            raise InvalidRequestError("A rejection note is required")

        row = await self._transition(
            request_id, RequestStatus.REJECTED, actor_id, note=note
        )
        try:
            await self._ledger.award(
                row.student_id, row.points_spent, reason=REFUND_REASON, actor_id=actor_id
            )
            await self._inventory.release(row.item_id)
        except (TrackerError, SQLAlchemyError) as exc:
            logger.exception("Rejection of request %d left partial effects", request_id)
            raise ConsistencyError(
                f"Rejection of request {request_id} could not refund and restock"
            ) from exc

        logger.info("Request %d rejected by %d: %s", request_id, actor_id, note)
        return await self.get_request(request_id)

    async def _transition(
        self,
        request_id: int,
        target: RequestStatus,
        actor_id: int,
        note: str | None = None,
    ):
        values = {"status": target.value, "processed_by": actor_id}
        if note is not None:
            values["note"] = note
        result = await self._db.execute(
            update(ItemRequest)
            .where(
                ItemRequest.id == request_id,
                ItemRequest.status == RequestStatus.PENDING.value,
            )
            .values(**values)
            .returning(
                ItemRequest.student_id, ItemRequest.item_id, ItemRequest.points_spent
            )
            .execution_options(synchronize_session=False)
        )
        row = result.first()
        if row is None:
            current = await self.get_request(request_id)
            logger.warning(
                "Refused %s of request %d: already %s",
                target.value, request_id, current.status,
            )
            raise InvalidStateTransitionError(
                f"Request has already been processed ({current.status})"
            )
        return row

    async def _compensate_reservation(self, item_id: int) -> None:
        try:
            await self._inventory.release(item_id)
        except (TrackerError, SQLAlchemyError) as exc:
            logger.exception("Could not release reservation on item %d", item_id)
            raise ConsistencyError(
                f"Reservation on item {item_id} could not be released"
            ) from exc
        logger.info("Released reservation on item %d after failed deduct", item_id)
