"""Order service - Business logic for the order lifecycle"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import email_service
from ...models import LOCKED_ORDER_STATUSES, Order, User, utcnow
from ...services import notification_service, order_scheduler
from ...services.payment_service import PaymentGateway
from ...services.receipt_pdf import generate_order_receipt
from ...shared.pagination import paginate
from ...utils import image_storage
from .repository import OrderRepository
from .schemas import AdminOrderUpdate, MaterialInput, OrderCreate, OrderUpdate, StyleInput

logger = logging.getLogger(__name__)


class OrderService:
    """Service layer for order business logic"""

    def __init__(self, db: Session, queue=None, gateway: Optional[PaymentGateway] = None):
        self.db = db
        self.queue = queue
        self.gateway = gateway
        self.repo = OrderRepository()

    # ========================================================================
    # SNAPSHOTS
    # ========================================================================

    def _resolve_image(self, value: Optional[str], folder: str, uploaded: list[str]) -> dict:
        """Inline data:image payloads are uploaded; anything else must already be a URL"""
        if not value:
            return {"image": None}
        if image_storage.is_data_uri(value):
            stored = image_storage.upload_data_uri(value, folder)
            uploaded.append(stored["key"])
            return {"image": stored["url"], "imageKey": stored["key"]}
        if value.startswith(("http://", "https://")):
            return {"image": value}
        raise HTTPException(status_code=400, detail="Image must be a URL or a data:image base64 string")

    def _style_snapshot(self, data: StyleInput, uploaded: list[str]) -> dict:
        if data.styleId is not None:
            style = self.repo.get_style(self.db, data.styleId)
            if not style:
                raise HTTPException(status_code=404, detail="Style not found")
            return {
                "styleId": style.id,
                "title": style.title,
                "price": style.price,
                "yardsRequired": style.yards_required,
                "image": style.image,
                "recommendedMaterials": list(style.recommended_materials or []),
            }

        snapshot = {
            "styleId": None,
            "title": data.title,
            "price": data.price,
            "yardsRequired": data.yardsRequired,
            "recommendedMaterials": data.recommendedMaterials,
        }
        snapshot.update(self._resolve_image(data.image, "orders/styles", uploaded))
        return snapshot

    def _material_snapshot(self, data: MaterialInput, uploaded: list[str]) -> dict:
        if data.fabricId is not None:
            fabric = self.repo.get_fabric(self.db, data.fabricId)
            if not fabric:
                raise HTTPException(status_code=404, detail="Fabric not found")
            return {
                "fabricId": fabric.id,
                "name": fabric.title,
                "type": fabric.material,
                "pricePerYard": fabric.price,
                "image": fabric.image,
            }

        snapshot = {
            "fabricId": None,
            "name": data.name,
            "type": data.type,
            "pricePerYard": data.pricePerYard,
        }
        snapshot.update(self._resolve_image(data.image, "orders/materials", uploaded))
        return snapshot

    def _check_measurement(self, measurement_id: Optional[int], user_id: int) -> None:
        if measurement_id is None:
            return
        if not self.repo.get_measurement_for_user(self.db, measurement_id, user_id):
            raise HTTPException(status_code=404, detail="Measurement not found")

    @staticmethod
    def _discard_uploads(keys: list[str]) -> None:
        for key in keys:
            image_storage.delete_image(key)

    # ========================================================================
    # CUSTOMER OPERATIONS
    # ========================================================================

    async def create_order(self, data: OrderCreate, user: User) -> Order:
        """Validate references, snapshot catalog rows, persist and announce the order"""
        logger.info(f"📥 Creating {data.orderType} order for user_id: {user.id}")

        self._check_measurement(data.measurementId, user.id)

        uploaded: list[str] = []
        try:
            style = self._style_snapshot(data.style, uploaded)
            material = self._material_snapshot(data.material, uploaded)

            order = Order(
                user_id=user.id,
                customer_name=user.name,
                customer_email=user.email,
                order_type=data.orderType,
                style=style,
                material=material,
                measurement_id=data.measurementId,
                notes=data.notes,
                status="pending",
                payment_status="unpaid",
            )
            self.db.add(order)
            self.db.flush()
            notification_service.notify_order_created(self.db, order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._discard_uploads(uploaded)
            raise

        self.db.refresh(order)
        logger.info(f"✅ Order {order.id} created (total {order.total_price})")

        await email_service.send_order_created_emails(self.queue, order)
        return order

    def list_orders(
        self,
        user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ):
        query = self.repo.get_user_orders_query(self.db, user.id, status, payment_status)
        return paginate(query, page, limit)

    def get_order(self, order_id: int, user: User) -> Order:
        order = self.repo.get_order_for_user(self.db, order_id, user.id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    def get_receipt(self, order_id: int, user: User) -> bytes:
        order = self.get_order(order_id, user)
        return generate_order_receipt(order)

    async def pay_order(self, order_id: int, reference: str, user: User) -> Order:
        """
        Verify a gateway reference against the order total.

        A rejected or short payment marks the order failed and is returned
        normally; only an unreachable gateway surfaces as an error.
        """
        order = self.get_order(order_id, user)
        if order.payment_status == "paid":
            raise HTTPException(status_code=400, detail="Order has already been paid")
        if order.status == "cancelled":
            raise HTTPException(status_code=400, detail="Cannot pay for a cancelled order")

        verification = await self.gateway.verify(reference)

        if verification.successful and round(verification.amount, 2) >= round(order.total_price, 2):
            now = utcnow()
            updated = self.repo.mark_paid(
                self.db,
                order.id,
                {
                    "payment_status": "paid",
                    "status": "in-progress",
                    "payment_reference": reference,
                    "paid_at": now,
                    "expected_delivery_date": order.created_at
                    + timedelta(days=order_scheduler.DELIVERY_DAYS),
                },
            )
            if not updated:
                self.db.rollback()
                raise HTTPException(status_code=400, detail="Order has already been paid")

            self.db.refresh(order)
            notification_service.notify_payment_status(self.db, order)
            self.db.commit()
            self.db.refresh(order)
            logger.info(f"💰 Order {order.id} paid ({verification.amount}) ref={reference}")

            await order_scheduler.schedule_order_notifications(self.db, self.queue, order)
            await email_service.send_payment_confirmed_emails(self.queue, order)
            return order

        logger.warning(
            f"⚠️ Payment for order {order.id} not accepted: "
            f"gateway_status={verification.gateway_status} amount={verification.amount} "
            f"expected={order.total_price}"
        )
        order.payment_status = "failed"
        order.payment_reference = reference
        notification_service.notify_payment_status(self.db, order)
        self.db.commit()
        self.db.refresh(order)

        await email_service.send_payment_status_email(self.queue, order)
        return order

    def update_order(self, order_id: int, data: OrderUpdate, user: User) -> Order:
        order = self.get_order(order_id, user)
        if order.status in LOCKED_ORDER_STATUSES:
            raise HTTPException(
                status_code=400, detail=f"Order can no longer be modified (status: {order.status})"
            )
        if data.notes is None:
            raise HTTPException(status_code=400, detail="No updatable fields provided")

        order.notes = data.notes
        self.db.commit()
        self.db.refresh(order)
        return order

    async def cancel_order(self, order_id: int, user: User) -> Order:
        order = self.get_order(order_id, user)
        if order.status in LOCKED_ORDER_STATUSES:
            raise HTTPException(
                status_code=400, detail=f"Cannot cancel an order that is {order.status}"
            )

        if not self.repo.mark_cancelled(self.db, order.id, LOCKED_ORDER_STATUSES):
            self.db.rollback()
            raise HTTPException(status_code=400, detail="Order can no longer be cancelled")

        self.db.refresh(order)
        notification_service.notify_order_cancelled(self.db, order)
        self.db.commit()
        self.db.refresh(order)
        logger.info(f"🚫 Order {order.id} cancelled by user {user.id}")

        await order_scheduler.cancel_order_notifications(self.queue, order.id)
        await email_service.send_order_status_email(self.queue, order)
        return order

    # ========================================================================
    # ADMIN OPERATIONS
    # ========================================================================

    def admin_list_orders(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        order_type: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
    ):
        query = self.repo.get_admin_query(self.db, status, payment_status, order_type, search, sort)
        return paginate(query, page, limit)

    def admin_get_order(self, order_id: int) -> Order:
        order = self.repo.get_order(self.db, order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    async def admin_update_order(self, order_id: int, data: AdminOrderUpdate) -> Order:
        """
        Apply an admin patch. Each status or payment transition is announced,
        and the delayed notifications follow whether the order is still schedulable.
        """
        order = self.admin_get_order(order_id)
        old_status = order.status
        old_payment_status = order.payment_status
        old_order_type = order.order_type
        replaced_keys = [
            snapshot.get("imageKey")
            for snapshot, incoming in ((order.style, data.style), (order.material, data.material))
            if incoming is not None and snapshot
        ]

        uploaded: list[str] = []
        try:
            if data.style is not None:
                order.style = self._style_snapshot(data.style, uploaded)
            if data.material is not None:
                order.material = self._material_snapshot(data.material, uploaded)
            if data.measurementId is not None:
                self._check_measurement(data.measurementId, order.user_id)
                order.measurement_id = data.measurementId
            if data.notes is not None:
                order.notes = data.notes
            if data.orderType is not None:
                order.order_type = data.orderType

            if data.paymentStatus is not None and data.paymentStatus != old_payment_status:
                order.payment_status = data.paymentStatus
                if data.paymentStatus == "paid":
                    order.paid_at = order.paid_at or utcnow()
                    if data.status is None and order.status == "pending":
                        order.status = "in-progress"

            if data.status is not None and data.status != old_status:
                order.status = data.status
                if data.status == "completed":
                    order.actual_delivery_date = utcnow()

            status_changed = order.status != old_status
            payment_changed = order.payment_status != old_payment_status
            if status_changed:
                notification_service.notify_order_status(self.db, order)
            if payment_changed:
                notification_service.notify_payment_status(self.db, order)

            self.db.commit()
        except Exception:
            self.db.rollback()
            self._discard_uploads(uploaded)
            raise

        self.db.refresh(order)
        self._discard_uploads([key for key in replaced_keys if key])
        logger.info(
            f"🛠️ Admin updated order {order.id}: status {old_status}->{order.status}, "
            f"payment {old_payment_status}->{order.payment_status}"
        )

        # Jobs follow is_schedulable; both calls are idempotent by job id
        if status_changed or payment_changed or order.order_type != old_order_type:
            if order_scheduler.is_schedulable(order):
                await order_scheduler.schedule_order_notifications(self.db, self.queue, order)
            else:
                await order_scheduler.cancel_order_notifications(self.queue, order.id)

        if status_changed:
            await email_service.send_order_status_email(self.queue, order)
        if payment_changed:
            await email_service.send_payment_status_email(self.queue, order)
        return order

    async def admin_delete_order(self, order_id: int) -> None:
        order = self.admin_get_order(order_id)
        image_keys = [
            snapshot.get("imageKey") for snapshot in (order.style or {}, order.material or {})
        ]

        self.repo.delete_order(self.db, order)
        logger.info(f"🗑️ Admin deleted order {order_id}")

        await order_scheduler.cancel_order_notifications(self.queue, order_id)
        self._discard_uploads([key for key in image_keys if key])
