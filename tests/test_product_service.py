# =============================================================================
# tests/test_product_service.py - Product Service Tests
# =============================================================================
# Service-level tests against in-memory collaborators:
# - CRUD writes commit and publish exactly one event to the owner only
# - Missing products produce 404 and no event
# - Batch import derives ids, upserts the business, resets to pending
# - Business deletion cascades to products and stored images
#
# Run with: poetry run pytest tests/test_product_service.py -v
# =============================================================================

import pytest

from app.exceptions import (
    BusinessNotFoundError,
    InvalidIdentifierError,
    InvalidStatusTransitionError,
    NoPendingProductsError,
    ProductAlreadyExistsError,
    ProductNotFoundError,
    ValidationFailedError,
)
from core.models.business import BusinessCreate, BusinessInfo
from core.models.product import (
    ProductCreate,
    ProductImportRequest,
    ProductStatus,
    ProductUpdate,
)
from lib.document_store import business_path, product_path
from lib.utils import product_id_from_name
from tests.conftest import BUSINESS_ID, OTHER_USER_ID, USER_ID


async def _create(context, **fields):
    return await context.products.create_product(USER_ID, BUSINESS_ID, ProductCreate(**fields))


# =============================================================================
# Create / Read
# =============================================================================

class TestCreateProduct:
    """Tests for ProductService.create_product."""

    @pytest.mark.asyncio
    async def test_create_lamp(self, context, business, owner_socket, other_socket):
        product = await _create(context, name="Lamp", price=20)

        stored = context.store.peek(product_path(USER_ID, BUSINESS_ID, product["id"]))
        assert stored["status"] == "pending"
        assert stored["name"] == "Lamp"
        assert stored["price"] == 20

        assert owner_socket.sent == [{"type": "product:created", "payload": stored}]
        assert other_socket.sent == []

    @pytest.mark.asyncio
    async def test_created_at_not_after_updated_at(self, context, business):
        product = await _create(context, name="Lamp")
        assert product["createdAt"] <= product["updatedAt"]

    @pytest.mark.asyncio
    async def test_client_chosen_id(self, context, business):
        product = await _create(context, id="lamp-01", name="Lamp")
        assert product["id"] == "lamp-01"

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, context, business, owner_socket):
        await _create(context, id="lamp-01", name="Lamp")

        with pytest.raises(ProductAlreadyExistsError):
            await _create(context, id="lamp-01", name="Other")

        assert owner_socket.types() == ["product:created"]

    @pytest.mark.asyncio
    async def test_unsafe_id_rejected(self, context, business):
        with pytest.raises(InvalidIdentifierError):
            await _create(context, id="../../other-user", name="Lamp")

    @pytest.mark.asyncio
    async def test_non_pending_status_rejected(self, context, business, owner_socket):
        with pytest.raises(ValidationFailedError):
            await _create(context, name="Lamp", status=ProductStatus.POSTED)
        assert owner_socket.sent == []

    @pytest.mark.asyncio
    async def test_unknown_business(self, context):
        with pytest.raises(BusinessNotFoundError):
            await _create(context, name="Lamp")

    @pytest.mark.asyncio
    async def test_other_user_cannot_read(self, context, business):
        product = await _create(context, name="Lamp")

        with pytest.raises(ProductNotFoundError):
            await context.products.get_product(OTHER_USER_ID, BUSINESS_ID, product["id"])

    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, context, business):
        first = await _create(context, name="Lamp")
        await _create(context, name="Chair")
        await context.products.update_product(
            USER_ID, BUSINESS_ID, first["id"], ProductUpdate(status=ProductStatus.PROCESSING)
        )

        processing = await context.products.list_products(USER_ID, BUSINESS_ID, status=ProductStatus.PROCESSING)
        everything = await context.products.list_products(USER_ID, BUSINESS_ID)

        assert [p["id"] for p in processing] == [first["id"]]
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_next_pending(self, context, business):
        first = await _create(context, name="Lamp")
        await _create(context, name="Chair")

        assert (await context.products.next_pending(USER_ID, BUSINESS_ID))["id"] == first["id"]

    @pytest.mark.asyncio
    async def test_next_pending_empty(self, context, business):
        with pytest.raises(NoPendingProductsError):
            await context.products.next_pending(USER_ID, BUSINESS_ID)


# =============================================================================
# Update
# =============================================================================

class TestUpdateProduct:
    """Tests for ProductService.update_product."""

    @pytest.mark.asyncio
    async def test_sequential_updates_merge(self, context, business):
        product = await _create(context, name="Lamp", price=20)

        await context.products.update_product(
            USER_ID, BUSINESS_ID, product["id"], ProductUpdate(status=ProductStatus.PROCESSING)
        )
        await context.products.update_product(
            USER_ID, BUSINESS_ID, product["id"], ProductUpdate(description="x")
        )

        final = await context.products.get_product(USER_ID, BUSINESS_ID, product["id"])
        assert final["status"] == "processing"
        assert final["description"] == "x"
        assert final["name"] == "Lamp"
        assert final["createdAt"] <= final["updatedAt"]

    @pytest.mark.asyncio
    async def test_update_publishes_merged_document(self, context, business, owner_socket, other_socket):
        product = await _create(context, name="Lamp")
        updated = await context.products.update_product(
            USER_ID, BUSINESS_ID, product["id"], ProductUpdate(price=30)
        )

        assert owner_socket.sent[-1] == {"type": "product:updated", "payload": updated}
        assert updated["price"] == 30
        assert other_socket.sent == []

    @pytest.mark.asyncio
    async def test_update_missing_product(self, context, business, owner_socket):
        with pytest.raises(ProductNotFoundError):
            await context.products.update_product(USER_ID, BUSINESS_ID, "nope", ProductUpdate(name="x"))

        assert owner_socket.sent == []
        assert context.store.peek(product_path(USER_ID, BUSINESS_ID, "nope")) is None

    @pytest.mark.asyncio
    async def test_illegal_transition_writes_nothing(self, context, business, owner_socket):
        product = await _create(context, name="Lamp")

        with pytest.raises(InvalidStatusTransitionError):
            await context.products.update_product(
                USER_ID, BUSINESS_ID, product["id"], ProductUpdate(status=ProductStatus.POSTED)
            )

        assert (await context.products.get_product(USER_ID, BUSINESS_ID, product["id"]))["status"] == "pending"
        assert owner_socket.types() == ["product:created"]

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, context, business):
        product = await _create(context, name="Lamp")
        with pytest.raises(ValidationFailedError):
            await context.products.update_product(USER_ID, BUSINESS_ID, product["id"], ProductUpdate())


# =============================================================================
# Image Upload / Delete
# =============================================================================

class TestImagesAndDelete:
    """Tests for source image upload and product deletion."""

    @pytest.mark.asyncio
    async def test_upload_sets_image_url(self, context, business, owner_socket):
        product = await _create(context, name="Lamp")

        updated = await context.products.upload_image(
            USER_ID, BUSINESS_ID, product["id"], b"jpeg-bytes", "lamp.jpg", "image/jpeg"
        )

        folder = f"users/{USER_ID}/businesses/{BUSINESS_ID}/products/{product['id']}/original/"
        assert updated["imageUrl"].startswith(f"https://storage.test/{folder}")
        assert any(path.startswith(folder) for path in context.storage.objects)
        assert owner_socket.types() == ["product:created", "product:updated"]

    @pytest.mark.asyncio
    async def test_delete_removes_document_and_images(self, context, business, owner_socket, other_socket):
        product = await _create(context, name="Lamp")
        await context.products.upload_image(USER_ID, BUSINESS_ID, product["id"], b"a", "a.png", "image/png")
        await context.products.upload_image(USER_ID, BUSINESS_ID, product["id"], b"b", "b.png", "image/png")

        await context.products.delete_product(USER_ID, BUSINESS_ID, product["id"])

        with pytest.raises(ProductNotFoundError):
            await context.products.get_product(USER_ID, BUSINESS_ID, product["id"])
        assert context.storage.objects == {}
        assert owner_socket.sent[-1] == {
            "type": "product:deleted",
            "payload": {"id": product["id"], "businessId": BUSINESS_ID},
        }
        assert other_socket.sent == []

    @pytest.mark.asyncio
    async def test_delete_missing_product(self, context, business, owner_socket):
        with pytest.raises(ProductNotFoundError):
            await context.products.delete_product(USER_ID, BUSINESS_ID, "nope")
        assert owner_socket.sent == []


# =============================================================================
# Batch Import
# =============================================================================

class TestImportProducts:
    """Tests for ProductService.import_products."""

    @pytest.mark.asyncio
    async def test_import_creates_business_and_products(self, context, owner_socket):
        request = ProductImportRequest.model_validate({
            "businessId": "shop-7",
            "businessInfo": {"name": "Shop", "slogan": "Best lamps"},
            "products": [{"name": "Lamp", "price": 20}, {"Name": "Chair"}],
        })

        products = await context.products.import_products(USER_ID, request)

        assert [p["id"] for p in products] == [product_id_from_name("Lamp"), product_id_from_name("Chair")]
        assert all(p["status"] == "pending" for p in products)
        assert products[1]["name"] == "Chair"

        business = context.store.peek(business_path(USER_ID, "shop-7"))
        assert business["slogan"] == "Best lamps"
        assert business["preferredStyle"] == "realistic"
        assert owner_socket.types() == ["business:created", "product:created", "product:created"]

    @pytest.mark.asyncio
    async def test_reimport_updates_and_resets_status(self, context, business, owner_socket):
        request = ProductImportRequest.model_validate({
            "businessId": BUSINESS_ID,
            "products": {"name": "Lamp", "price": 20},
        })
        first = (await context.products.import_products(USER_ID, request))[0]
        await context.products.update_product(
            USER_ID, BUSINESS_ID, first["id"], ProductUpdate(status=ProductStatus.PROCESSING)
        )

        again = ProductImportRequest.model_validate({
            "businessId": BUSINESS_ID,
            "products": [{"name": "Lamp", "price": 25, "status": "posted"}],
        })
        second = (await context.products.import_products(USER_ID, again))[0]

        assert second["id"] == first["id"]
        assert second["price"] == 25
        assert second["status"] == "pending"
        assert second["createdAt"] == first["createdAt"]
        assert owner_socket.types()[-1] == "product:updated"

    @pytest.mark.asyncio
    async def test_repeated_name_saved_once(self, context, business, owner_socket):
        request = ProductImportRequest.model_validate({
            "businessId": BUSINESS_ID,
            "products": [
                {"name": "Lamp", "price": 1, "description": "Brass"},
                {"name": "Lamp", "price": 2},
            ],
        })

        products = await context.products.import_products(USER_ID, request)

        assert len(products) == 1
        assert products[0]["price"] == 2
        assert products[0]["description"] == "Brass"
        stored = context.store.peek(product_path(USER_ID, BUSINESS_ID, product_id_from_name("Lamp")))
        assert stored == products[0]
        assert owner_socket.types() == ["product:created"]

    @pytest.mark.asyncio
    async def test_unnamed_items_share_one_document(self, context, business, owner_socket):
        request = ProductImportRequest.model_validate({
            "businessId": BUSINESS_ID,
            "products": [{"price": 1}, {"price": 2}, {"name": "Chair"}],
        })

        products = await context.products.import_products(USER_ID, request)

        assert [p["id"] for p in products] == [product_id_from_name(None), product_id_from_name("Chair")]
        assert len(context.store.documents) == 3
        assert owner_socket.types() == ["product:created", "product:created"]

    @pytest.mark.asyncio
    async def test_business_info_string(self, context, business):
        request = ProductImportRequest.model_validate({
            "businessId": BUSINESS_ID,
            "businessInfo": '{"slogan": "From a string"}',
            "products": [{"name": "Lamp"}],
        })
        await context.products.import_products(USER_ID, request)

        assert context.store.peek(business_path(USER_ID, BUSINESS_ID))["slogan"] == "From a string"

    @pytest.mark.asyncio
    async def test_unreadable_business_info_ignored(self, context, business):
        request = ProductImportRequest.model_validate({
            "businessId": BUSINESS_ID,
            "businessInfo": "not json",
            "products": [{"name": "Lamp"}],
        })
        products = await context.products.import_products(USER_ID, request)
        assert len(products) == 1

    @pytest.mark.asyncio
    async def test_empty_list_rejected(self, context, business):
        request = ProductImportRequest.model_validate({"businessId": BUSINESS_ID, "products": []})
        with pytest.raises(ValidationFailedError):
            await context.products.import_products(USER_ID, request)


# =============================================================================
# Businesses
# =============================================================================

class TestBusinessService:
    """Tests for BusinessService."""

    @pytest.mark.asyncio
    async def test_create_with_defaults(self, context, owner_socket):
        business = await context.businesses.create_business(USER_ID, BusinessCreate(name="Bakery"))

        assert business["name"] == "Bakery"
        assert business["languages"] == ["hebrew"]
        assert business["preferredStyle"] == "realistic"
        assert owner_socket.sent == [{"type": "business:created", "payload": business}]

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, context, business, owner_socket):
        updated = await context.businesses.update_business(
            USER_ID, BUSINESS_ID, BusinessInfo(slogan="Fresh daily")
        )

        assert updated["slogan"] == "Fresh daily"
        assert updated["name"] == "Dana's Business"
        assert owner_socket.types() == ["business:updated"]

    @pytest.mark.asyncio
    async def test_update_missing_business(self, context, owner_socket):
        with pytest.raises(BusinessNotFoundError):
            await context.businesses.update_business(USER_ID, "nope", BusinessInfo(slogan="x"))
        assert owner_socket.sent == []

    @pytest.mark.asyncio
    async def test_delete_cascades(self, context, business, owner_socket):
        lamp = await _create(context, name="Lamp")
        chair = await _create(context, name="Chair")
        await context.products.upload_image(USER_ID, BUSINESS_ID, lamp["id"], b"a", "a.png", "image/png")

        deleted = await context.businesses.delete_business(USER_ID, BUSINESS_ID)

        assert deleted == 2
        assert context.store.documents == {}
        assert context.storage.objects == {}
        assert owner_socket.types()[-3:] == ["product:deleted", "product:deleted", "business:deleted"]
        deleted_ids = {m["payload"]["id"] for m in owner_socket.sent if m["type"] == "product:deleted"}
        assert deleted_ids == {lamp["id"], chair["id"]}
