"""Seller coupon management: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Date, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.coupon.coupon import Coupon, DiscountType
from marketplace.domain import marketplace, logger


@marketplace.command(part_of="Coupon")
class CreateCoupon:
    """Issue a new coupon that discounts the seller's own products."""

    seller_id = Identifier(required=True)
    code = String(required=True, max_length=50)
    discount_type = String(required=True, choices=DiscountType)
    value = Float(required=True, min_value=0.0)
    min_order_value = Float(default=0.0, min_value=0.0)
    usage_limit = Integer(min_value=1)
    expires_at = Date()


@marketplace.command(part_of="Coupon")
class DeleteCoupon:
    seller_id = Identifier(required=True)
    coupon_id = Identifier(required=True)


@marketplace.command_handler(part_of=Coupon)
class ManageCouponsHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": ["Coupon code already exists"]})

        coupon = Coupon.create(
            seller_id=command.seller_id,
            code=command.code,
            discount_type=command.discount_type,
            value=command.value,
            min_order_value=command.min_order_value or 0,
            usage_limit=command.usage_limit,
            expires_at=command.expires_at,
        )
        repo.add(coupon)

        logger.info("coupon_created", coupon_id=str(coupon.id), seller_id=str(command.seller_id), code=coupon.code)
        return str(coupon.id)

    @handle(DeleteCoupon)
    def delete_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        # Another seller's coupon is reported exactly like a missing one
        if str(coupon.seller_id) != str(command.seller_id):
            raise ObjectNotFoundError(f"Coupon with id `{command.coupon_id}` does not exist")

        repo._dao.delete(coupon)
        logger.info("coupon_deleted", coupon_id=str(coupon.id), seller_id=str(command.seller_id), code=coupon.code)
