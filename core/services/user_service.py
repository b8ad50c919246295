# =============================================================================
# core/services/user_service.py - User Business Logic
# =============================================================================
# Handles the user document at users/{uid}.
#
# The first successful login creates the user together with a default
# business and one sample product, so a new account never starts empty.
# Later logins only refresh lastLoginAt.
# =============================================================================

import logging
from typing import Any

from app.auth.models import AuthUser
from app.exceptions import UserNotFoundError
from core.models.business import BusinessCreate
from core.models.product import ProductCreate
from core.models.user import User
from core.services.business_service import BusinessService
from core.services.product_service import ProductService
from lib.document_store import DocumentStore, products_collection, user_path
from lib.utils import utc_timestamp

logger = logging.getLogger(__name__)


class UserService:
    """Service for user profile and account bootstrap."""

    def __init__(self, store: DocumentStore, businesses: BusinessService, products: ProductService):
        self.store = store
        self.businesses = businesses
        self.products = products

    async def get_user(self, uid: str) -> dict[str, Any]:
        """
        Get the user document.

        Raises:
            UserNotFoundError: If the user never logged in through the API
        """
        user = await self.store.get(user_path(uid))
        if user is None:
            raise UserNotFoundError(uid)
        return user

    async def ensure_user(self, auth_user: AuthUser) -> tuple[dict[str, Any], bool]:
        """
        Create the account on first login, otherwise record the login.

        Returns:
            (user document, True if it was just created)
        """
        path = user_path(auth_user.id)
        now = utc_timestamp()

        existing = await self.store.get(path)
        if existing is not None:
            merged = await self.store.merge(path, {"lastLoginAt": now})
            return merged or existing, False

        display_name = auth_user.name or (auth_user.email or "").split("@")[0] or None
        user = User(
            uid=auth_user.id,
            email=auth_user.email,
            display_name=display_name,
            photo_url=auth_user.picture,
            provider=auth_user.provider or "email",
            email_verified=auth_user.email_verified,
            created_at=now,
            last_login_at=now,
        ).model_dump(mode="json", by_alias=True)

        await self.store.set(path, user)
        logger.info(f"Created user {auth_user.id}")

        business = await self.businesses.create_business(
            auth_user.id,
            BusinessCreate(
                name=f"{display_name or 'My'}'s Business",
                description="Your default business workspace",
            ),
        )
        await self.products.create_product(
            auth_user.id,
            business["businessId"],
            ProductCreate(
                name="Sample Product",
                price=0,
                description="This is your first demo product.",
            ),
        )

        return user, True

    async def account_snapshot(self, uid: str) -> dict[str, Any]:
        """
        The user's profile with every business and every product.

        Returns:
            {"user": ..., "businesses": [...], "products": [...]}
        """
        user = await self.get_user(uid)
        businesses = await self.businesses.list_businesses(uid)

        products: list[dict[str, Any]] = []
        for business in businesses:
            business_id = business.get("businessId")
            if business_id:
                products.extend(await self.store.query(products_collection(uid, business_id)))

        return {"user": user, "businesses": businesses, "products": products}
